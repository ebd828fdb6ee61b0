"""Tests for lazy field access on sites and environments."""

import unittest

from sitesync.inventory import Environment, Site
from tests.base import InventoryTestCase, MockProvider


class TestVcsUrl(InventoryTestCase):
    """Tests for building VCS URLs."""

    def _site(self, protocol, url) -> Site:
        site = Site(self.context, "acquia", "alpha")
        site.set("vcs_protocol", protocol)
        site.set("vcs_url", url)
        return site

    def test_ssh_protocol_gets_scheme(self):
        """Test that ssh URLs are prefixed with ssh://."""
        site = self._site("ssh", "codeserver.dev.x@codeserver.dev.x.drush.in:2222/~/repository.git")
        self.assertEqual(
            site.get_vcs_url(),
            "ssh://codeserver.dev.x@codeserver.dev.x.drush.in:2222/~/repository.git",
        )

    def test_other_protocols_are_unchanged(self):
        """Test that non-ssh URLs are returned as stored."""
        for protocol in ("git", "https", "svn"):
            site = self._site(protocol, "alpha@svn-1.prod.hosting.acquia.com:alpha.git")
            self.assertEqual(
                site.get_vcs_url(), "alpha@svn-1.prod.hosting.acquia.com:alpha.git"
            )


class TestLazyFieldFetch(InventoryTestCase):
    """Tests for fetching missing site fields from the linked provider."""

    def setUp(self):
        super().setUp()
        self.provider = self.context.register(
            MockProvider(
                self.context,
                remote={"alpha": {"realm": "prod", "title": "Alpha Site"}},
            )
        )
        self.site = self.provider.site("alpha")

    def test_cached_value_does_not_fetch(self):
        """Test that a present value is returned without a fetch."""
        self.site.set("title", "Cached Title")
        self.assertEqual(self.site.get("title"), "Cached Title")
        self.assertEqual(self.provider.fetch_calls, [])

    def test_missing_value_fetched_once(self):
        """Test that an unset field triggers exactly one fetch."""
        self.assertEqual(self.site.get("title"), "Alpha Site")
        self.assertEqual(self.site.get("title"), "Alpha Site")
        self.assertEqual(self.provider.fetch_calls, [("alpha", "title")])

    def test_fetched_value_is_saved(self):
        """Test that a fetched value lands in the store."""
        self.site.get("title")

        loaded = Site.load(self.context, "mock", "alpha")
        self.assertIsNotNone(loaded.id)
        self.assertEqual(loaded.cached("title"), "Alpha Site")

    def test_absent_remote_field_not_refetched(self):
        """Test that a field the provider lacks is fetched only once."""
        self.assertIsNone(self.site.get("vcs_url"))
        self.assertIsNone(self.site.get("vcs_url"))
        self.assertEqual(self.provider.fetch_calls, [("alpha", "vcs_url")])

    def test_refresh_option_forces_fetch(self):
        """Test that the refresh option re-fetches present values."""
        self.site.set("title", "Stale Title")
        self.force_refresh()

        self.assertEqual(self.site.get("title"), "Alpha Site")
        self.assertEqual(self.site.get("title"), "Alpha Site")
        self.assertEqual(
            self.provider.fetch_calls, [("alpha", "title"), ("alpha", "title")]
        )

    def test_missing_value_is_traced(self):
        """Test that a miss is reported through the trace session."""
        self.site.get("title")
        self.assertIn("alpha is missing value for title", self.trace_messages())

    def test_unlinked_site_does_not_fetch(self):
        """Test that a site of an unknown provider just returns None."""
        site = Site(self.context, "unregistered", "alpha")
        self.assertIsNone(site.get("title"))
        self.assertEqual(self.provider.fetch_calls, [])


class TestEnvironmentLazyFetch(InventoryTestCase):
    """Tests for environments filling in their own missing fields."""

    def setUp(self):
        super().setUp()
        self.provider = self.context.register(MockProvider(self.context))
        self.provider.environments["alpha"] = {
            "dev": {"host": "dev.alpha.example.com", "branch": "main"},
        }
        self.site = self.provider.site("alpha")
        self.site.save()

    def test_site_read_does_not_fetch_environment_fields(self):
        """Test that loading a site leaves environment fields to be fetched later."""
        Environment(self.context, self.site, "dev").save()

        loaded = Site.load(self.context, "mock", "alpha")
        environment = loaded.environments["dev"]
        self.assertIsNone(environment.cached("host"))

    def test_environment_get_fetches_from_provider(self):
        """Test that a missing environment field comes from the provider."""
        environment = Environment(self.context, self.site, "dev")
        environment.save()

        self.assertEqual(environment.get("host"), "dev.alpha.example.com")

    def test_sync_environments(self):
        """Test that syncing adds and saves the provider's environments."""
        environments = self.site.sync_environments()

        self.assertEqual(list(environments), ["dev"])
        loaded = Site.load(self.context, "mock", "alpha")
        self.assertEqual(loaded.environments["dev"].cached("branch"), "main")


if __name__ == "__main__":
    unittest.main()
