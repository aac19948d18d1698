from async_storage.models import ProvisioningWarning
from async_storage.services.state_manager import ProvisioningStateManager, ProvisioningStatus


def test_status_and_history_are_recorded(fake_redis):
    manager = ProvisioningStateManager(fake_redis)

    manager.set_status("ws-1", ProvisioningStatus.REJECTED, {"error": {"message": "bad"}})
    manager.set_status("ws-1", ProvisioningStatus.PROVISIONED)

    assert manager.get_status("ws-1") == "PROVISIONED"
    history = manager.get_history("ws-1")
    assert [entry["status"] for entry in history] == ["PROVISIONED", "REJECTED"]
    assert history[1]["details"] == {"error": {"message": "bad"}}
    assert "timestamp" in history[0]


def test_unknown_workspace_has_no_state(fake_redis):
    manager = ProvisioningStateManager(fake_redis)

    assert manager.get_status("ws-x") is None
    assert manager.get_history("ws-x") == []
    assert manager.get_warnings("ws-x") is None


def test_warnings_are_replaced_per_attempt(fake_redis):
    manager = ProvisioningStateManager(fake_redis)

    manager.set_warnings("ws-1", [ProvisioningWarning(4200, "first")])
    manager.set_warnings("ws-1", [])

    assert manager.get_warnings("ws-1") == []


def test_invalid_warnings_payload_is_ignored(fake_redis):
    fake_redis.set("async-storage:ws-1:warnings", "{oops")
    manager = ProvisioningStateManager(fake_redis)

    assert manager.get_warnings("ws-1") is None
