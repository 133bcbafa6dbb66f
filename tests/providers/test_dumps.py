import pytest

from conftest import FakeHost, FakeLoader
from devbox.core.errors import ProbeFailure
from devbox.core.reconcile import DATABASE_NOT_PRECREATED
from devbox.providers.dumps import DumpImporter, ImportOutcome, list_dumps


@pytest.fixture
def dump_dir(tmp_path):
    for name in ("wordpress.sql", "my-app.sql", "notes.txt"):
        (tmp_path / name).write_text("-- dump\n")
    (tmp_path / "nested").mkdir()
    return tmp_path


def outcomes(results):
    return {r.db_name: r.outcome for r in results}


def test_list_dumps_is_flat_sorted_and_filtered(dump_dir):
    assert [p.name for p in list_dumps(dump_dir)] == ["my-app.sql", "wordpress.sql"]


def test_missing_directory_has_no_dumps(tmp_path):
    assert list_dumps(tmp_path / "missing") == []


def test_database_with_tables_is_never_imported(dump_dir):
    host = FakeHost(databases={"wordpress": 12, "my-app": 4})
    loader = FakeLoader(host)
    results = DumpImporter(loader).import_all(dump_dir, host)
    assert set(outcomes(results).values()) == {ImportOutcome.SKIPPED}
    assert loader.loaded == []


def test_import_then_skip_on_second_run(dump_dir):
    host = FakeHost(databases={"wordpress": 0, "my-app": 0})
    loader = FakeLoader(host)
    importer = DumpImporter(loader)

    first = importer.import_all(dump_dir, host)
    assert outcomes(first) == {"my-app": ImportOutcome.IMPORTED, "wordpress": ImportOutcome.IMPORTED}

    second = importer.import_all(dump_dir, host)
    assert outcomes(second) == {"my-app": ImportOutcome.SKIPPED, "wordpress": ImportOutcome.SKIPPED}
    assert loader.loaded == ["my-app", "wordpress"]


def test_missing_database_fails_without_stopping_others(dump_dir):
    host = FakeHost(databases={"wordpress": 0})
    results = DumpImporter(FakeLoader(host)).import_all(dump_dir, host)
    by_name = {r.db_name: r for r in results}

    assert by_name["my-app"].outcome == ImportOutcome.FAILED
    assert by_name["my-app"].reason == DATABASE_NOT_PRECREATED
    assert by_name["wordpress"].outcome == ImportOutcome.IMPORTED
    assert "my-app" not in host.databases


def test_hyphenated_name_is_preserved(dump_dir):
    host = FakeHost(databases={"my-app": 0, "wordpress": 5})
    loader = FakeLoader(host)
    DumpImporter(loader).import_all(dump_dir, host)
    assert loader.loaded == ["my-app"]


def test_failed_import_is_rolled_back(dump_dir):
    host = FakeHost(databases={"wordpress": 0, "my-app": 0})
    loader = FakeLoader(host, fail=["wordpress"])
    results = DumpImporter(loader).import_all(dump_dir, host)

    assert outcomes(results)["wordpress"] == ImportOutcome.FAILED
    assert outcomes(results)["my-app"] == ImportOutcome.IMPORTED
    assert loader.purged == ["wordpress"]
    # vacía de nuevo: la siguiente ejecución reintenta
    assert host.databases["wordpress"] == 0


class InterruptedLoader(FakeLoader):
    def load_dump(self, database, dump_file):
        self.loaded.append(database)
        self.host.databases[database] = 1
        raise KeyboardInterrupt


def test_interrupted_import_is_rolled_back_and_retried(tmp_path):
    (tmp_path / "wordpress.sql").write_text("-- dump\n")
    host = FakeHost(databases={"wordpress": 0})
    loader = InterruptedLoader(host)
    with pytest.raises(KeyboardInterrupt):
        DumpImporter(loader).import_all(tmp_path, host)

    assert loader.purged == ["wordpress"]
    assert host.databases["wordpress"] == 0

    # la base vacía se vuelve a importar en lugar de omitirse
    retry = DumpImporter(FakeLoader(host)).import_all(tmp_path, host)
    assert outcomes(retry) == {"wordpress": ImportOutcome.IMPORTED}


def test_probe_failure_is_reported_per_file(dump_dir):
    class Unreachable:
        def table_count(self, database):
            raise ProbeFailure("Can't connect to MySQL server")

    results = DumpImporter(FakeLoader(FakeHost())).import_all(dump_dir, Unreachable())
    assert set(outcomes(results).values()) == {ImportOutcome.FAILED}


def test_dry_run_never_loads(dump_dir):
    host = FakeHost(databases={"wordpress": 0, "my-app": 0})
    loader = FakeLoader(host)
    results = DumpImporter(loader, dry_run=True).import_all(dump_dir, host)
    assert set(outcomes(results).values()) == {ImportOutcome.IMPORTED}
    assert loader.loaded == []
    assert host.databases == {"wordpress": 0, "my-app": 0}


def test_results_convert_to_actions(dump_dir):
    host = FakeHost(databases={"wordpress": 3})
    results = DumpImporter(FakeLoader(host)).import_all(dump_dir, host)
    actions = {r.db_name: r.to_action() for r in results}
    assert actions["wordpress"].is_skip
    assert actions["my-app"].is_failure
