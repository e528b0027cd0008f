"""Permission matching and the RBAC cache."""

import inspect
import time

from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from src.access.domain import Actor, PermissionSet
from src.access.infrastructure import RBACConfigManager
from src.access.interfaces.dependencies import get_current_actor

RBAC_YAML = """
roles:
  admin_kota:
    permissions: ["*"]
  helpdesk:
    permissions: ["tickets.assign", "incidents.create"]
  supervisor:
    permissions: ["tickets.*"]
"""


def test_exact_grant():
    perms = PermissionSet.of(["tickets.assign"])
    assert perms.allows("tickets.assign")
    assert not perms.allows("tickets.reassign")


def test_global_wildcard():
    assert PermissionSet.of(["*"]).allows("anything.at_all")


def test_subject_wildcard_covers_only_its_subject():
    perms = PermissionSet.of(["tickets.*"])
    assert perms.allows("tickets.reassign")
    assert not perms.allows("requests.create")


def test_empty_set_denies():
    assert not Actor(id="u1", role="nobody").can("tickets.assign")


def test_manager_resolves_roles(tmp_path):
    path = tmp_path / "rbac.yaml"
    path.write_text(RBAC_YAML)

    manager = RBACConfigManager(ttl_seconds=300)
    manager.load(path)

    assert manager.permissions_for("supervisor").allows("tickets.reassign")
    assert manager.permissions_for("helpdesk").allows("tickets.assign")
    assert not manager.permissions_for("helpdesk").allows("tickets.reassign")
    assert len(manager.permissions_for("unknown")) == 0
    assert len(manager.permissions_for(None)) == 0


def test_missing_file_denies_everything(tmp_path):
    manager = RBACConfigManager()
    manager.load(tmp_path / "absent.yaml")
    assert not manager.permissions_for("admin_kota").allows("tickets.assign")


def test_explicit_reload_picks_up_changes(tmp_path):
    path = tmp_path / "rbac.yaml"
    path.write_text(RBAC_YAML)
    manager = RBACConfigManager(ttl_seconds=300)
    manager.load(path)

    path.write_text("roles:\n  helpdesk:\n    permissions: [\"tickets.reassign\"]\n")
    assert manager.reload() is True
    assert manager.permissions_for("helpdesk").allows("tickets.reassign")
    assert not manager.has_role("supervisor")


def test_failed_reload_keeps_previous_snapshot(tmp_path):
    path = tmp_path / "rbac.yaml"
    path.write_text(RBAC_YAML)
    manager = RBACConfigManager(ttl_seconds=300)
    manager.load(path)

    path.write_text("roles: [not, a, mapping")
    assert manager.reload() is False
    assert manager.permissions_for("supervisor").allows("tickets.write")


def test_stale_snapshot_reloads_on_read(tmp_path):
    path = tmp_path / "rbac.yaml"
    path.write_text(RBAC_YAML)
    manager = RBACConfigManager(ttl_seconds=0)
    manager.load(path)

    path.write_text("roles:\n  helpdesk:\n    permissions: []\n")
    time.sleep(0.01)
    assert not manager.permissions_for("helpdesk").allows("tickets.assign")


def test_actor_dependency_runs_in_threadpool():
    assert not inspect.iscoroutinefunction(get_current_actor)


def test_actor_resolved_from_gateway_headers(tmp_path):
    path = tmp_path / "rbac.yaml"
    path.write_text(RBAC_YAML)
    manager = RBACConfigManager(ttl_seconds=0)
    manager.load(path)

    app = FastAPI()
    app.state.rbac = manager

    @app.get("/whoami")
    def whoami(actor: Actor = Depends(get_current_actor)):
        return {"id": actor.id, "unit": actor.unit_id, "can_reassign": actor.can("tickets.reassign")}

    client = TestClient(app)
    response = client.get("/whoami", headers={
        "X-Actor-Id": "u-7", "X-Actor-Role": "supervisor", "X-Actor-Unit": "unit-1",
    })

    assert response.json() == {"id": "u-7", "unit": "unit-1", "can_reassign": True}
