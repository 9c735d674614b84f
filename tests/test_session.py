import pytest

from umbrella.errors import BootstrapError, ResolutionError
from umbrella.injector import InjectedCallable
from umbrella.session import Umbrella
from umbrella.settings import UmbrellaSettings


class App:
    def __init__(self):
        self.events = []
        self.mounted = None


@pytest.fixture
def app():
    return App()


@pytest.fixture
def root(write_unit):
    write_unit(
        "config/middlewares/logger.py",
        """
        def exports(_app, request):
            return _app, request
        """,
    )
    write_unit(
        "config/environments/all.py",
        """
        def exports(_app):
            _app.events.append("configure all")
        """,
    )
    write_unit(
        "config/environments/development.py",
        """
        def exports(_app):
            _app.events.append("configure development")
        """,
    )
    write_unit(
        "config/environments/production.py",
        """
        def exports(_app):
            _app.events.append("configure production")
        """,
    )
    write_unit(
        "config/initializers/umbrella.py",
        """
        def exports(_environment):
            return [{"component": "database", "dependencies": _environment}, "cache"]
        """,
    )
    write_unit(
        "config/initializers/database.py",
        """
        def exports(_app, db, environment):
            _app.events.append(("database", db, environment))
        """,
    )
    write_unit(
        "config/initializers/cache.py",
        """
        from umbrella.injector import current_context

        def exports(done):
            current_context().events.append("cache")
            done()
        """,
    )
    write_unit(
        "routes/index.py",
        """
        def exports(db, request):
            return db, request
        """,
    )
    write_unit(
        "routes/admin/users.py",
        """
        def exports(db, request):
            return "users", request
        """,
    )
    write_unit(
        "config/routes.py",
        """
        def exports(_app, _routes):
            _app.mounted = _routes
        """,
    )
    write_unit(
        "models/user.py",
        """
        def exports(db):
            return {"model": "user", "db": db}
        """,
    )
    return write_unit("models/README.txt", "not a model").parent.parent


@pytest.fixture
def settings():
    return UmbrellaSettings(environment="development")


@pytest.fixture
def umbrella(app, root, settings):
    return Umbrella(app, root, settings)


@pytest.fixture
def outcomes():
    return []


def test_all_wires_the_application(umbrella, app, outcomes):
    umbrella.all({"db": "the db"}, lambda err, u: outcomes.append((err, u)))

    assert outcomes == [(None, umbrella)]
    assert app.events == [
        "configure all",
        "configure development",
        ("database", "the db", "development"),
        "cache",
    ]


def test_all_builds_middlewares_routes_and_models(umbrella, app):
    umbrella.all({"db": "the db"})

    assert umbrella.middlewares["logger"]("req") == (app, "req")
    assert isinstance(umbrella.routes["index"], InjectedCallable)
    assert umbrella.routes["admin"]["users"]("req") == ("users", "req")
    assert app.mounted is umbrella.routes
    assert umbrella.models == {"user": {"model": "user", "db": "the db"}}


def test_production_environment_selects_production_configuration(app, root, outcomes):
    umbrella = Umbrella(app, root, UmbrellaSettings(environment="production"))

    umbrella.all({"db": "the db"}, lambda err, u: outcomes.append(err))

    assert outcomes == [None]
    assert app.events[:2] == ["configure all", "configure production"]
    assert app.events[2] == ("database", "the db", "production")


def test_internals_are_exposed(umbrella, app, root):
    umbrella.bootstrap({"db": "the db"})

    assert umbrella.app is app
    assert umbrella.root == root
    assert umbrella.environment == "development"
    assert umbrella.components == {"db": "the db"}
    assert umbrella.middlewares is None
    assert umbrella.registry["_app"] is app
    assert umbrella.injector.context is app


def test_bootstrap_twice_is_not_allowed(umbrella):
    umbrella.bootstrap({})

    with pytest.raises(BootstrapError, match="multiple times"):
        umbrella.bootstrap({})


def test_init_twice_is_not_allowed(umbrella, app, outcomes):
    umbrella.bootstrap({"db": "the db"}).build_middlewares().configure()
    umbrella.init(lambda err, u: outcomes.append(err))

    with pytest.raises(BootstrapError, match="multiple times"):
        umbrella.init(lambda err, u: outcomes.append(err))
    assert outcomes == [None]
    assert app.events.count("cache") == 1


def test_operations_require_bootstrap(umbrella):
    with pytest.raises(BootstrapError, match=r"bootstrapped before route\(\)"):
        umbrella.route()


def test_startup_operations_are_rejected_after_startup(umbrella):
    umbrella.all({"db": "the db"})

    with pytest.raises(BootstrapError, match="after startup has finished"):
        umbrella.route()
    with pytest.raises(BootstrapError):
        umbrella.build_middlewares()


def test_internal_component_used_too_early(umbrella, write_unit, outcomes):
    write_unit(
        "config/middlewares/early.py",
        """
        def exports(_routes, request):
            return request
        """,
    )

    umbrella.all({"db": "the db"}, lambda err, u: outcomes.append(err))

    assert len(outcomes) == 1
    assert isinstance(outcomes[0], ResolutionError)


def test_initializer_failure_is_reported_and_stops_startup(umbrella, app, write_unit, outcomes):
    write_unit(
        "config/initializers/cache.py",
        """
        def exports(done):
            done(RuntimeError("cache unavailable"))
        """,
    )

    umbrella.all({"db": "the db"}, lambda err, u: outcomes.append(err))

    assert [str(err) for err in outcomes] == ["cache unavailable"]
    assert umbrella.routes is None
    assert app.mounted is None


def test_step_by_step_startup(umbrella, app, outcomes):
    umbrella.bootstrap({"db": "the db"}).build_middlewares().configure()
    umbrella.init(lambda err, u: outcomes.append(err))

    assert outcomes == [None]

    umbrella.route().bootstrap_models().finish_startup()

    assert app.mounted == umbrella.routes


def test_missing_models_directory_yields_no_models(app, write_unit, root):
    (root / "models" / "user.py").unlink()
    (root / "models" / "README.txt").unlink()
    (root / "models").rmdir()

    umbrella = Umbrella(app, root, UmbrellaSettings())
    umbrella.all({"db": "the db"})

    assert umbrella.models == {}


def test_components_shadowing_internals_warn(umbrella, logged_warnings):
    umbrella.bootstrap({"_app": "user app"})

    assert umbrella.registry["_app"] == "user app"
    assert any("overrides internal component 'app'" in m for m in logged_warnings)


def test_independent_sessions_do_not_share_state(root, outcomes):
    first, second = App(), App()

    Umbrella(first, root, UmbrellaSettings()).all({"db": "one"}, lambda err, u: outcomes.append(err))
    Umbrella(second, root, UmbrellaSettings()).all({"db": "two"}, lambda err, u: outcomes.append(err))

    assert outcomes == [None, None]
    assert ("database", "one", "development") in first.events
    assert ("database", "two", "development") in second.events
    assert first.mounted is not second.mounted
