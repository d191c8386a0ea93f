"""Tests for resource type selection and the object visitor."""

import json

import pytest
import yaml

from kubeexport.cluster import ClusterError
from kubeexport.export.paths import flat_object_path
from kubeexport.export.visitor import ObjectVisitor, select_resource_types, unwrap_list
from kubeexport.models import ResourceDocument, ResourceType


class TestSelectResourceTypes:
    """Tests for the default resource type selector."""

    def test_selects_namespaced_listable(self, catalog):
        """Test cluster-scoped and unlistable types are dropped."""
        names = [rt.name for rt in select_resource_types(catalog)]

        assert "nodes" not in names
        assert "bindings" not in names
        assert {"configmaps", "deployments", "jobs", "pods"} <= set(names)

    def test_exclusions(self, catalog):
        """Test excluded names are dropped."""
        names = [rt.name for rt in select_resource_types(catalog, ["events", "endpoints"])]

        assert names == ["configmaps", "deployments", "jobs", "pods"]

    def test_exclusions_case_insensitive(self, catalog):
        """Test exclusions match regardless of case and whitespace."""
        names = [rt.name for rt in select_resource_types(catalog, [" Events ", "ENDPOINTS"])]

        assert "events" not in names
        assert "endpoints" not in names

    def test_one_type_per_name(self, catalog):
        """Test a plural served by several groups is selected once, first wins."""
        selected = select_resource_types(catalog)
        events = [rt for rt in selected if rt.name == "events"]

        assert len(events) == 1
        assert events[0].group == ""

    def test_sorted_by_name(self, catalog):
        """Test the selection is ordered by resource name."""
        names = [rt.name for rt in select_resource_types(catalog)]

        assert names == sorted(names)

    def test_empty_catalog(self):
        """Test an empty discovery result selects nothing."""
        assert select_resource_types([]) == []


class TestUnwrapList:
    """Tests for splitting listing responses."""

    def test_unwraps_items(self, configmaps_type):
        """Test a list container yields one document per item."""
        payload = {
            "kind": "List",
            "items": [
                {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "a"}},
                {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "b"}},
            ],
        }

        documents = unwrap_list(payload, configmaps_type)

        assert [doc.name for doc in documents] == ["a", "b"]

    def test_fills_missing_kind_and_api_version(self, deployments_type):
        """Test items inherit kind and apiVersion from the resource type."""
        payload = {"kind": "DeploymentList", "items": [{"metadata": {"name": "web"}}]}

        [doc] = unwrap_list(payload, deployments_type)

        assert doc.kind == "Deployment"
        assert doc.api_version == "apps/v1"

    def test_payload_left_unmodified(self, deployments_type):
        """Test filling in kind and apiVersion does not touch the listing response."""
        item = {"metadata": {"name": "web"}}
        payload = {"kind": "DeploymentList", "items": [item]}

        [doc] = unwrap_list(payload, deployments_type)

        assert doc.kind == "Deployment"
        assert item == {"metadata": {"name": "web"}}
        assert payload["items"] == [{"metadata": {"name": "web"}}]

    def test_keeps_item_kind(self, deployments_type):
        """Test kind and apiVersion set on an item are not overwritten."""
        payload = {
            "items": [
                {"apiVersion": "apps/v1beta2", "kind": "Deployment", "metadata": {"name": "x"}}
            ]
        }

        [doc] = unwrap_list(payload, deployments_type)

        assert doc.api_version == "apps/v1beta2"

    def test_single_object(self, configmaps_type):
        """Test a payload without items is taken as one object."""
        payload = {"apiVersion": "v1", "kind": "ConfigMap", "metadata": {"name": "solo"}}

        [doc] = unwrap_list(payload, configmaps_type)

        assert doc.name == "solo"

    def test_empty_list(self, configmaps_type):
        """Test an empty list yields no documents."""
        assert unwrap_list({"kind": "List", "items": []}, configmaps_type) == []

    def test_list_without_items(self, configmaps_type):
        """Test a List kind without items is malformed."""
        with pytest.raises(ClusterError, match="Unexpected listing response"):
            unwrap_list({"kind": "ConfigMapList"}, configmaps_type)

    def test_non_mapping_item(self, configmaps_type):
        """Test non-mapping items are malformed."""
        with pytest.raises(ClusterError, match="Unexpected item"):
            unwrap_list({"items": ["configmap/a"]}, configmaps_type)


class TestObjectVisitor:
    """Tests for listing and exporting objects."""

    def test_visit_lists_in_namespace(self, fake_client, deployments_type, tmp_path):
        """Test visit lists the type in the configured namespace."""
        visitor = ObjectVisitor(fake_client, tmp_path, namespace="shop")

        documents = visitor.visit(deployments_type)

        assert [doc.name for doc in documents] == ["web", "worker"]
        assert fake_client.listed == [("deployments", "shop")]

    def test_visit_propagates_listing_error(self, fake_client, deployments_type, tmp_path):
        """Test listing failures surface as ClusterError."""
        fake_client.list_errors["deployments"] = "forbidden"
        visitor = ObjectVisitor(fake_client, tmp_path)

        with pytest.raises(ClusterError, match="forbidden"):
            visitor.visit(deployments_type)

    def test_export_object_writes_sanitized_yaml(self, fake_client, deployments_type, tmp_path):
        """Test an exported object is sanitized and written under its app directory."""
        visitor = ObjectVisitor(fake_client, tmp_path)
        web = visitor.visit(deployments_type)[0]

        path = visitor.export_object(deployments_type, web)

        assert path == tmp_path / "projects" / "shop" / "deployments" / "web.yaml"
        content = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert content["metadata"]["name"] == "web"
        assert "uid" not in content["metadata"]
        assert "status" not in content

    def test_export_object_leaves_document_unchanged(
        self, fake_client, deployments_type, tmp_path
    ):
        """Test the listed document is not modified by exporting it."""
        visitor = ObjectVisitor(fake_client, tmp_path)
        web = visitor.visit(deployments_type)[0]
        before = web.deep_copy()

        visitor.export_object(deployments_type, web)

        assert web == before

    def test_export_object_vetoed(self, fake_client, pods_type, tmp_path):
        """Test a vetoed object returns None and writes nothing."""
        visitor = ObjectVisitor(fake_client, tmp_path)
        [pod] = visitor.visit(pods_type)

        assert visitor.export_object(pods_type, pod) is None
        assert not tmp_path.joinpath("projects").exists()

    def test_export_object_json_flat(self, fake_client, configmaps_type, tmp_path):
        """Test output format and path function are honored."""
        visitor = ObjectVisitor(
            fake_client, tmp_path, output_format="json", path_func=flat_object_path
        )
        [settings] = visitor.visit(configmaps_type)

        path = visitor.export_object(configmaps_type, settings)

        assert path == tmp_path / "configmaps" / "settings.json"
        assert json.loads(path.read_text(encoding="utf-8"))["data"] == {"key": "value"}

    def test_custom_processors(self, fake_client, tmp_path):
        """Test a custom processor pipeline replaces the default one."""
        secrets = ResourceType(name="secrets", kind="Secret", verbs=("list",))

        def redact(doc: ResourceDocument) -> ResourceDocument:
            doc.content["data"] = {}
            return doc

        visitor = ObjectVisitor(fake_client, tmp_path, processors=[redact])
        doc = ResourceDocument(
            {
                "kind": "Secret",
                "apiVersion": "v1",
                "metadata": {"name": "token"},
                "data": {"k": "c2VjcmV0"},
            }
        )

        path = visitor.export_object(secrets, doc)

        content = yaml.safe_load(path.read_text(encoding="utf-8"))
        assert content["data"] == {}
