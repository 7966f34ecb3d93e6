# noxfile.py
from nox_poetry import Session, session

PY_VERSIONS = ["3.11", "3.12"]
SOURCES = ("src", "tests", "noxfile.py")


@session(python=PY_VERSIONS)
def format(session: Session) -> None:
    """Auto-format code."""
    session.install("black", "isort")
    session.run("isort", *SOURCES)
    session.run("black", *SOURCES)


@session(python=PY_VERSIONS)
def typecheck_mypy(session: Session) -> None:
    session.install("mypy", "pytest", "pandas-stubs~=2.2")
    session.install(".")
    session.run("mypy", "--config-file", "pyproject.toml")


@session(python=PY_VERSIONS)
def lint(session: Session) -> None:
    """Check formatting and lint without touching files."""
    session.install("ruff", "black", "isort")
    session.run("ruff", "check", *SOURCES)
    session.run("isort", "--check-only", *SOURCES)
    session.run("black", "--check", *SOURCES)


@session(python=PY_VERSIONS)
def tests(session: Session) -> None:
    """Run the test suite; charts render off-screen."""
    session.install(".", "pytest")
    session.run("pytest", "-q", *session.posargs, env={"MPLBACKEND": "Agg"})


@session(python=PY_VERSIONS[0])
def sample_report(session: Session) -> None:
    """Print the weekly report for the synthetic snapshot."""
    session.install(".")
    session.run("shift-analytics", "--report", "weekly", "--no-plot")
