from pytest_archon import archrule

CORE_MODULES = (
    "pubsub_worker.acknowledgment",
    "pubsub_worker.decoding",
    "pubsub_worker.dispatcher",
    "pubsub_worker.failure_tracker",
    "pubsub_worker.pipeline",
    "pubsub_worker.registry",
    "pubsub_worker.request",
)


def test_core_is_transport_agnostic() -> None:
    """
    The poll loop, pipeline and bookkeeping only talk to ports.
    They must not depend on a concrete queue or store adapter.
    """
    for module in CORE_MODULES:
        (
            archrule(f"{module}_is_transport_agnostic")
            .match(module)
            .should_not_import("pubsub_worker.adapters*")
            .should_not_import("aiobotocore*")
            .should_not_import("botocore*")
            .should_not_import("motor*")
            .should_not_import("pymongo*")
            .check("pubsub_worker")
        )


def test_ports_do_not_depend_on_adapters() -> None:
    """
    Ports define contracts only.
    """
    (
        archrule("ports_isolation")
        .match("pubsub_worker.ports*")
        .should_not_import("pubsub_worker.adapters*")
        .should_not_import("pubsub_worker.app")
        .check("pubsub_worker")
    )


def test_memory_adapters_need_no_infrastructure() -> None:
    """
    In-memory adapters back the test suite and local runs without AWS or Mongo.
    """
    (
        archrule("memory_adapters_isolation")
        .match("pubsub_worker.adapters.memory*")
        .should_not_import("pubsub_worker.adapters.sqs*")
        .should_not_import("pubsub_worker.adapters.mongo*")
        .should_not_import("aiobotocore*")
        .should_not_import("botocore*")
        .should_not_import("motor*")
        .should_not_import("pymongo*")
        .check("pubsub_worker")
    )


def test_adapters_are_independent() -> None:
    """
    Each infrastructure adapter stands alone.
    """
    (
        archrule("sqs_independence")
        .match("pubsub_worker.adapters.sqs*")
        .should_not_import("pubsub_worker.adapters.mongo*")
        .should_not_import("motor*")
        .should_not_import("pymongo*")
        .check("pubsub_worker")
    )
    (
        archrule("mongo_independence")
        .match("pubsub_worker.adapters.mongo*")
        .should_not_import("pubsub_worker.adapters.sqs*")
        .should_not_import("aiobotocore*")
        .should_not_import("botocore*")
        .check("pubsub_worker")
    )


def test_exceptions_are_a_leaf() -> None:
    """
    Every layer raises these errors, so the module imports nothing internal.
    """
    (
        archrule("exceptions_leaf")
        .match("pubsub_worker.exceptions")
        .should_not_import("pubsub_worker.*")
        .check("pubsub_worker")
    )
