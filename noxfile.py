import nox

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]

DOMAIN_TEST_PATHS = ["tests/ordering/domain/", "tests/newsletter/domain/"]


def _install(session: nox.Session) -> None:
    """Install the project with its test extra into the nox virtualenv."""
    session.install("-e", ".[test]")


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    """Run full test suite across Python versions."""
    _install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS)
def tests_domain(session: nox.Session) -> None:
    """Run domain-layer tests only (no infrastructure required)."""
    _install(session)
    session.run("pytest", *DOMAIN_TEST_PATHS)


@nox.session(python=PYTHON_VERSIONS[-1])
def tests_fast(session: nox.Session) -> None:
    """Skip the thread-heavy concurrency tests."""
    _install(session)
    session.run("pytest", "-m", "not slow")
