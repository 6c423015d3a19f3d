"""
Tests for the credential store, provider registry and availability filter.
"""
import pytest
from pydantic import ValidationError

from corespark_gateway.core.credentials import (
    CredentialStore,
    get_credential_store,
)
from corespark_gateway.core.errors import ProviderNotFoundError
from corespark_gateway.core.registry import DEFAULT_CATALOG, ProviderRegistry
from corespark_gateway.models.provider import (
    CredentialVendor,
    ProviderCapability,
    ProviderDescriptor,
    Vendor,
)


class TestCredentialStore:
    """Test credential merge semantics."""

    def test_empty_store(self):
        """Test a new store has no credentials."""
        store = CredentialStore()
        assert store.get_credential("openai") is None
        assert store.configured_vendors() == set()

    def test_merge_keeps_unspecified_vendors(self):
        """Test setting one vendor never clears another."""
        store = CredentialStore()
        store.set_credentials({"openai": "sk-1"})
        store.set_credentials({"anthropic": "sk-ant-1"})
        assert store.get_credential("openai") == "sk-1"
        assert store.get_credential("anthropic") == "sk-ant-1"

    def test_merge_overwrites_supplied_vendor(self):
        """Test a supplied vendor is replaced."""
        store = CredentialStore({"openai": "sk-old"})
        store.set_credentials({"openai": "sk-new"})
        assert store.get_credential(CredentialVendor.OPENAI) == "sk-new"

    def test_empty_value_clears_vendor(self):
        """Test an empty secret removes the vendor."""
        store = CredentialStore({"openai": "sk-1", "google": "g-1"})
        store.set_credentials({"openai": ""})
        assert store.get_credential("openai") is None
        assert store.get_credential("google") == "g-1"

    def test_unknown_vendor_rejected(self):
        """Test keys outside the vendor enum are rejected."""
        store = CredentialStore()
        with pytest.raises(ValueError):
            store.set_credentials({"mistral": "key"})

    def test_accepts_vendor_enum_keys(self):
        """Test chat vendor enum members work as keys."""
        store = CredentialStore({Vendor.GOOGLE: "g-1"})
        assert store.get_credential(Vendor.GOOGLE) == "g-1"

    def test_clear(self):
        """Test clearing removes everything."""
        store = CredentialStore({"openai": "sk-1", "anthropic": "sk-ant-1"})
        store.clear()
        assert store.configured_vendors() == set()

    def test_repr_hides_secrets(self):
        """Test repr lists vendors but not secrets."""
        store = CredentialStore({"openai": "sk-very-secret"})
        assert "sk-very-secret" not in repr(store)
        assert "openai" in repr(store)

    def test_default_store_is_shared(self):
        """Test the process-wide store is a singleton."""
        get_credential_store().set_credentials({"openai": "sk-1"})
        assert get_credential_store().get_credential("openai") == "sk-1"

    def test_default_store_reset_between_tests(self):
        """Test the autouse fixture gives each test a fresh store."""
        assert get_credential_store().get_credential("openai") is None


class TestProviderRegistry:
    """Test the static provider catalog."""

    def test_default_catalog_ids_unique(self):
        """Test every catalog id is unique."""
        ids = [d.id for d in DEFAULT_CATALOG]
        assert len(ids) == len(set(ids))

    def test_catalog_covers_every_vendor(self, registry):
        """Test each vendor family has at least one provider."""
        vendors = {d.vendor for d in registry.list_providers()}
        assert vendors == set(Vendor)

    def test_get_provider(self, registry):
        """Test looking up a provider by id."""
        descriptor = registry.get("claude-3-opus")
        assert descriptor.name == "Claude 3 Opus"
        assert descriptor.vendor == Vendor.ANTHROPIC
        assert descriptor.max_tokens == 200000

    def test_get_missing_provider(self, registry):
        """Test a missing id returns None."""
        assert registry.get("gpt-7") is None
        assert "gpt-7" not in registry

    def test_require_missing_provider(self, registry):
        """Test require raises for a missing id."""
        with pytest.raises(ProviderNotFoundError):
            registry.require("gpt-7")

    def test_duplicate_ids_rejected(self):
        """Test building a registry with duplicate ids fails."""
        with pytest.raises(ValueError):
            ProviderRegistry([DEFAULT_CATALOG[0], DEFAULT_CATALOG[0]])

    def test_descriptors_are_immutable(self, registry):
        """Test descriptors cannot be mutated."""
        descriptor = registry.get("gpt-4-turbo")
        with pytest.raises(ValidationError):
            descriptor.endpoint = "https://evil.example"

    def test_find_by_capability(self, registry):
        """Test filtering by capability."""
        images = registry.find_by_capability(ProviderCapability.IMAGE)
        assert [d.id for d in images] == ["dall-e-3"]


class TestAvailability:
    """Test availability derived from credentials."""

    def test_nothing_available_without_credentials(self, registry):
        """Test credential-requiring providers are excluded."""
        assert registry.list_available(CredentialStore()) == []

    def test_credential_makes_vendor_available(self, registry):
        """Test setting a key makes its providers appear without a restart."""
        store = CredentialStore()
        assert registry.list_available(store) == []

        store.set_credentials({"anthropic": "sk-ant-1"})
        ids = [d.id for d in registry.list_available(store)]
        assert ids == ["claude-3-opus", "claude-3-sonnet"]

    def test_shared_vendor_moves_together(self, registry):
        """Test descriptors of one vendor become available together."""
        store = CredentialStore({"openai": "sk-1"})
        ids = {d.id for d in registry.list_available(store)}
        assert ids == {"gpt-4-turbo", "gpt-3.5-turbo", "dall-e-3"}

        store.set_credentials({"openai": None})
        assert registry.list_available(store) == []

    def test_unused_vendor_credential_changes_nothing(self, registry):
        """Test a credential no descriptor uses adds no providers."""
        store = CredentialStore({"stability": "st-1"})
        assert registry.list_available(store) == []

    def test_provider_without_credential_always_available(self):
        """Test requires_credential=False providers are always eligible."""
        local = ProviderDescriptor(
            id="local-echo",
            name="Local Echo",
            vendor=Vendor.OPENAI,
            capability=ProviderCapability.TEXT,
            requires_credential=False,
            endpoint="http://localhost:8000/v1/chat/completions",
        )
        registry = ProviderRegistry([local, *DEFAULT_CATALOG])
        ids = [d.id for d in registry.list_available(CredentialStore())]
        assert ids == ["local-echo"]

    def test_catalog_order_preserved(self, registry, credentials):
        """Test available providers keep catalog order."""
        ids = [d.id for d in registry.list_available(credentials)]
        assert ids == [d.id for d in DEFAULT_CATALOG]
