import nox

PYTHONS = ["3.10", "3.11", "3.12"]
SOURCES = ["src", "tests", "noxfile.py"]

nox.options.sessions = ["tests", "lint", "type_check"]


@nox.session(python=PYTHONS)
def tests(session: nox.Session) -> None:
    """Unit, adapter and end-to-end worker tests."""
    session.install("-e", ".[test]")
    session.run("pytest", "--ignore=tests/architecture", *session.posargs)


@nox.session(python=PYTHONS[-1])
def arch_check(session: nox.Session) -> None:
    """Layering rules: core modules stay free of concrete adapters."""
    session.install("-e", ".[test]")
    session.run("pytest", "tests/architecture", *session.posargs)


@nox.session(python=PYTHONS[-1])
def lint(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", *SOURCES)
    session.run("ruff", "format", "--check", *SOURCES)


@nox.session(python=PYTHONS[-1])
def autoformat(session: nox.Session) -> None:
    session.install("ruff")
    session.run("ruff", "check", "--fix", *SOURCES)
    session.run("ruff", "format", *SOURCES)


@nox.session(python=PYTHONS[-1])
def type_check(session: nox.Session) -> None:
    """mypy in strict mode over the package."""
    session.install("-e", ".[dev]")
    session.run("mypy")


@nox.session(python=PYTHONS[-1])
def dead_code(session: nox.Session) -> None:
    session.install("vulture")
    session.run("vulture", "--min-confidence", "80", "src")
