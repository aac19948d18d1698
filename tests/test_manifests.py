from async_storage.models import SshPair
from async_storage.orchestration.manifests.pod import build_storage_pod
from async_storage.orchestration.manifests.service import IntOrString, build_storage_service
from async_storage.orchestration.manifests.storage import build_claim, build_config_map, config_map_name


def _pair(name: str) -> SshPair:
    return SshPair(owner="user-1", service="internal", name=name, public_key=f"ssh-rsa {name}")


def test_claim_copies_access_mode_and_quantity():
    claim = build_claim("ns", "ReadWriteMany", "20Gi")

    assert claim["kind"] == "PersistentVolumeClaim"
    assert claim["metadata"] == {"name": "async-storage-claim", "namespace": "ns"}
    assert claim["spec"]["accessModes"] == ["ReadWriteMany"]
    assert claim["spec"]["resources"]["requests"]["storage"] == "20Gi"


def test_config_map_is_named_after_namespace_and_uses_first_pair():
    config_map = build_config_map("ns", [_pair("first"), _pair("second")])

    assert config_map_name("ns") == "nsasync-storage-config"
    assert config_map["metadata"] == {"name": "nsasync-storage-config", "namespace": "ns"}
    assert config_map["data"] == {"authorized_keys": "ssh-rsa first"}


def test_config_map_is_absent_without_credentials():
    assert build_config_map("ns", []) is None
    assert build_config_map("ns", None) is None


def test_storage_pod_wires_claim_and_config_map():
    pod = build_storage_pod("ns", "storage:1", "nsasync-storage-config")

    assert pod["metadata"]["name"] == "async-storage"
    assert pod["metadata"]["namespace"] == "ns"
    assert pod["metadata"]["labels"] == {"app": "async-storage"}
    [container] = pod["spec"]["containers"]
    assert container["image"] == "storage:1"
    assert container["resources"] == {"limits": {"memory": "512Mi"}, "requests": {"memory": "256Mi"}}
    assert container["ports"] == [{"containerPort": 2222, "protocol": "TCP"}]

    volumes = {volume["name"]: volume for volume in pod["spec"]["volumes"]}
    assert volumes["async-storage-data"]["persistentVolumeClaim"]["claimName"] == "async-storage-claim"
    assert volumes["async-storage-configvolume"]["configMap"]["name"] == "nsasync-storage-config"

    mounts = {mount["name"]: mount for mount in container["volumeMounts"]}
    assert set(mounts) == set(volumes)
    assert mounts["async-storage-data"]["mountPath"] == "/var/lib/storage/data/"
    assert mounts["async-storage-data"]["readOnly"] is False
    assert mounts["async-storage-configvolume"]["mountPath"] == "/.ssh/authorized_keys"
    assert mounts["async-storage-configvolume"]["subPath"] == "authorized_keys"
    assert mounts["async-storage-configvolume"]["readOnly"] is True


def test_storage_service_selects_storage_pod():
    service = build_storage_service("ns")
    pod = build_storage_pod("ns", "storage:1", "cm")

    assert service["metadata"] == {"name": "async-storage", "namespace": "ns"}
    assert service["spec"]["selector"] == pod["metadata"]["labels"]
    [port] = service["spec"]["ports"]
    assert port["protocol"] == "TCP"
    assert port["port"] == 2222
    assert port["targetPort"] == 2222
    assert port["name"] == "rsync-port"


def test_target_port_keeps_both_encodings():
    target = IntOrString.of(2222)

    assert target.int_val == 2222
    assert target.str_val == "2222"
    assert target.to_manifest() == 2222


def test_builders_are_deterministic():
    assert build_storage_pod("ns", "img", "cm") == build_storage_pod("ns", "img", "cm")
    assert build_storage_service("ns") == build_storage_service("ns")
