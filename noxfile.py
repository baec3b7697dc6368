import nox

nox.options.sessions = ["tests"]

PYTHON_VERSIONS = ["3.11", "3.12", "3.13"]
CONTEXTS = ["identity", "catalogue", "ordering", "payments"]


def _poetry_install(session: nox.Session, *extra: str) -> None:
    session.run("poetry", "install", "--with", "test", *extra, external=True)


@nox.session(python=PYTHON_VERSIONS)
def tests(session: nox.Session) -> None:
    _poetry_install(session)
    session.run("pytest", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize("layer", ["domain", "application", "integration", "bdd"])
def layer(session: nox.Session, layer: str) -> None:
    """Run one test layer, selected by the marker conftest assigns from the path."""
    _poetry_install(session)
    session.run("pytest", "-m", layer, *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
@nox.parametrize("context", CONTEXTS)
def context(session: nox.Session, context: str) -> None:
    _poetry_install(session)
    session.run("pytest", f"tests/{context}", *session.posargs)


@nox.session(python=PYTHON_VERSIONS[-1])
def postgres(session: nox.Session) -> None:
    """Full suite against PostgreSQL. Needs DATABASE_URL (a scratch database), REDIS_URL and APP_SECRET."""
    _poetry_install(session, "--extras", "postgresql")
    session.run("pytest", "--env", "production", *session.posargs)
