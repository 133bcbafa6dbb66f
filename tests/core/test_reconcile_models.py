from devbox.core.reconcile import DATABASE_NOT_PRECREATED, Action, ActionKind, ActionPlan, database_name, decide_import


def test_skip_and_fail_do_not_count_as_changes():
    assert not Action.skip("nginx", "ok").changed
    assert not Action.fail("nginx", "boom").changed
    assert Action.skip("nginx", "ok").is_noop
    assert not Action.fail("nginx", "boom").is_noop


def test_pull_without_upstream_changes_is_noop():
    assert Action(ActionKind.PULL, "repo", "sin cambios", changed=False).is_noop
    assert not Action(ActionKind.PULL, "repo", "actualizado").is_noop


def test_plan_collects_failures_and_kinds():
    plan = ActionPlan()
    plan.add(Action(ActionKind.INSTALL, "nginx"))
    plan.add(Action.fail("php", "no existe"))
    plan.extend([Action.skip("git", "instalado")])

    assert len(plan) == 3
    assert [a.target for a in plan.failures] == ["php"]
    assert [a.target for a in plan.of_kind(ActionKind.INSTALL)] == ["nginx"]
    assert plan.changed


def test_empty_plan_is_noop():
    assert ActionPlan().is_noop


def test_database_name_is_stem_verbatim():
    assert database_name("my-app.sql") == "my-app"
    assert database_name("/srv/backups/WordPress_Dev.sql") == "WordPress_Dev"


def test_database_name_with_custom_extension():
    assert database_name("site.sql.dump", ".sql.dump") == "site"


def test_decide_import_missing_database_fails():
    action = decide_import("wordpress", None)
    assert action.is_failure
    assert action.reason == DATABASE_NOT_PRECREATED


def test_decide_import_never_imports_into_tables():
    action = decide_import("wordpress", 12)
    assert action.kind == ActionKind.SKIP
    assert "12" in action.reason


def test_decide_import_empty_database_imports():
    assert decide_import("wordpress", 0).kind == ActionKind.IMPORT
