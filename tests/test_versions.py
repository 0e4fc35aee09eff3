"""Tests for version selection against tag lists and apt listings."""

import unittest

from mocks import FakeRunner, ls_remote

from dind_setup.exceptions import VersionResolutionError
from dind_setup.versions import (
    EnginePins,
    GitTagSource,
    TagPattern,
    build_apt_version_regex,
    find_version_from_git_tags,
    match_apt_version,
    parse_tag_versions,
    resolve_engine_versions,
    resolve_version,
    sort_versions,
)


class TestSortVersions(unittest.TestCase):
    """Test version-order sorting."""

    def test_sorts_by_version_not_lexically(self) -> None:
        """1.10.0 sorts above 1.9.0 and 1.2.0."""
        self.assertEqual(sort_versions(["1.9.0", "1.10.0", "1.2.0"]), ["1.10.0", "1.9.0", "1.2.0"])

    def test_drops_duplicates(self) -> None:
        """Repeated versions appear once."""
        self.assertEqual(sort_versions(["2.0.0", "2.0.0", "1.0.0"]), ["2.0.0", "1.0.0"])


class TestParseTagVersions(unittest.TestCase):
    """Test extraction of versions from git ls-remote output."""

    def test_default_pattern_strips_v_prefix(self) -> None:
        """tags/v2.20.0 yields 2.20.0, and peeled refs are ignored."""
        output = ls_remote("v2.2.3", "v2.20.0", "v2.10.1")
        self.assertEqual(parse_tag_versions(output), ["2.20.0", "2.10.1", "2.2.3"])

    def test_ignores_prereleases_and_other_tags(self) -> None:
        """Tags with suffixes or without the prefix are skipped."""
        output = ls_remote("v2.0.0-rc.1", "v2.0.0", "docs-1.0", "1.29.2")
        self.assertEqual(parse_tag_versions(output), ["2.0.0"])

    def test_bare_tags_prefix(self) -> None:
        """Compose v1 tags carry no v prefix."""
        output = ls_remote("1.29.2", "1.29.1", "v2.0.0")
        self.assertEqual(parse_tag_versions(output, TagPattern(prefix="tags/")), ["1.29.2", "1.29.1"])

    def test_custom_separator_normalized(self) -> None:
        """An underscore separator is rewritten to dots."""
        output = ls_remote("v1_2_3", "v1_10_0")
        self.assertEqual(parse_tag_versions(output, TagPattern(separator="_")), ["1.10.0", "1.2.3"])

    def test_optional_last_part(self) -> None:
        """Two-part versions are accepted when the last part is optional."""
        output = ls_remote("v1.2", "v1.3.1")
        self.assertEqual(parse_tag_versions(output), ["1.3.1"])
        self.assertEqual(parse_tag_versions(output, TagPattern(last_part_optional=True)), ["1.3.1", "1.2"])


class TestResolveVersion(unittest.TestCase):
    """Test resolution of a requested token against candidates."""

    CANDIDATES = ["1.10.0", "1.9.0", "1.2.3", "1.2.0"]

    def test_latest_aliases_pick_newest(self) -> None:
        """latest, current and lts all select the version-order maximum."""
        candidates = sort_versions(["1.9.0", "1.10.0", "1.2.0"])
        for alias in ("latest", "current", "lts"):
            with self.subTest(alias=alias):
                self.assertEqual(resolve_version(alias, candidates), "1.10.0")

    def test_prefix_picks_newest_match(self) -> None:
        """1.2 selects the newest 1.2.x."""
        self.assertEqual(resolve_version("1.2", self.CANDIDATES), "1.2.3")

    def test_prefix_requires_component_boundary(self) -> None:
        """1.1 must not match 1.10.0."""
        with self.assertRaises(VersionResolutionError):
            resolve_version("1.1", self.CANDIDATES)

    def test_major_only_prefix(self) -> None:
        """A single component matches the newest release in that line."""
        self.assertEqual(resolve_version("1", self.CANDIDATES), "1.10.0")

    def test_full_version_must_exist(self) -> None:
        """A full version is accepted verbatim only when it is a candidate."""
        self.assertEqual(resolve_version("1.9.0", self.CANDIDATES), "1.9.0")
        with self.assertRaises(VersionResolutionError):
            resolve_version("1.9.1", self.CANDIDATES)

    def test_no_match_lists_candidates(self) -> None:
        """The error carries and prints every candidate."""
        with self.assertRaises(VersionResolutionError) as ctx:
            resolve_version("3", self.CANDIDATES, name="DOCKER_COMPOSE_PLUGIN_VERSION")
        self.assertEqual(ctx.exception.candidates, self.CANDIDATES)
        self.assertEqual(ctx.exception.exit_code, 1)
        message = str(ctx.exception)
        self.assertIn("Invalid DOCKER_COMPOSE_PLUGIN_VERSION value: 3", message)
        for candidate in self.CANDIDATES:
            self.assertIn(candidate, message)

    def test_none_is_not_resolvable(self) -> None:
        """The skip sentinel never resolves."""
        with self.assertRaises(VersionResolutionError):
            resolve_version("none", self.CANDIDATES)

    def test_latest_with_no_candidates(self) -> None:
        """latest fails when the repository has no usable tags."""
        with self.assertRaises(VersionResolutionError):
            resolve_version("latest", [])


class TestFindVersionFromGitTags(unittest.TestCase):
    """Test tag-based resolution through git ls-remote."""

    REPO = "https://github.com/docker/compose"

    def test_resolves_from_ls_remote(self) -> None:
        """Runs git ls-remote and resolves the prefix."""
        runner = FakeRunner({("git", "ls-remote", "--tags", self.REPO): (0, ls_remote("v2.19.1", "v2.20.3", "v2.20.0"))})
        with self.assertLogs("dind_setup.versions", level="INFO") as logs:
            version = find_version_from_git_tags("V", "2.20", GitTagSource(runner), self.REPO)
        self.assertEqual(version, "2.20.3")
        self.assertIn("V=2.20.3", "\n".join(logs.output))
        self.assertTrue(runner.ran("git", "ls-remote", "--tags", self.REPO))

    def test_none_fails_without_listing(self) -> None:
        """none is rejected before any network access."""
        runner = FakeRunner()
        with self.assertRaises(VersionResolutionError):
            find_version_from_git_tags("V", "none", GitTagSource(runner), self.REPO)
        self.assertEqual(runner.commands, [])


class TestAptVersionMatching(unittest.TestCase):
    """Test Debian package version matching for the engine and CLI."""

    MOBY_VERSIONS = [
        "20.10.23+azure-ubuntu22.04u2",
        "20.10.23+azure-ubuntu22.04u1",
        "20.10.22+azure-ubuntu22.04u1",
        "20.10.2+azure-1",
    ]

    def test_matches_with_revision_suffix(self) -> None:
        """20.10.22 matches the +azure build."""
        self.assertEqual(match_apt_version("20.10.22", self.MOBY_VERSIONS), "20.10.22+azure-ubuntu22.04u1")

    def test_first_match_wins(self) -> None:
        """apt's own preference order decides between several matches."""
        self.assertEqual(match_apt_version("20.10", self.MOBY_VERSIONS), "20.10.23+azure-ubuntu22.04u2")

    def test_does_not_match_longer_component(self) -> None:
        """20.10.2 must not match 20.10.22 or 20.10.23."""
        self.assertEqual(match_apt_version("20.10.2", self.MOBY_VERSIONS), "20.10.2+azure-1")

    def test_matches_after_epoch(self) -> None:
        """Docker CE versions carry an epoch."""
        versions = ["5:24.0.7-1~debian.12~bookworm", "5:24.0.6-1~debian.12~bookworm"]
        self.assertEqual(match_apt_version("24.0.6", versions), "5:24.0.6-1~debian.12~bookworm")

    def test_plus_is_escaped(self) -> None:
        """A literal + in the request is not a regex quantifier."""
        self.assertTrue(build_apt_version_regex("20.10.23+azure").search("20.10.23+azure-1"))
        self.assertFalse(build_apt_version_regex("20.10.23+azure").search("20.10.233azure"))

    def test_no_match(self) -> None:
        """Returns None when nothing matches."""
        self.assertIsNone(match_apt_version("19.03", self.MOBY_VERSIONS))


class TestResolveEngineVersions(unittest.TestCase):
    """Test joint engine/CLI pin resolution."""

    def test_latest_means_unpinned(self) -> None:
        """latest, lts and stable leave both packages unpinned."""
        for alias in ("latest", "lts", "stable"):
            with self.subTest(alias=alias):
                pins = resolve_engine_versions(alias, [], [])
                self.assertEqual(pins, EnginePins(engine=None, cli=None))
                self.assertEqual(pins.suffix("engine"), "")

    def test_both_pinned(self) -> None:
        """A match for both packages yields =version suffixes."""
        pins = resolve_engine_versions("24.0.7", ["5:24.0.7-1~debian.12~bookworm"], ["5:24.0.7-1~debian.12~bookworm"])
        self.assertEqual(pins.suffix("engine"), "=5:24.0.7-1~debian.12~bookworm")
        self.assertEqual(pins.suffix("cli"), "=5:24.0.7-1~debian.12~bookworm")

    def test_partial_match_is_an_error(self) -> None:
        """An engine match without a CLI match is rejected."""
        with self.assertRaises(VersionResolutionError) as ctx:
            resolve_engine_versions("24.0.7", ["5:24.0.7-1~debian.12~bookworm"], ["5:24.0.6-1~debian.12~bookworm"], context="OS debian bookworm (amd64)")
        message = str(ctx.exception)
        self.assertIn('No full or partial Docker / Moby version match found for "24.0.7" on OS debian bookworm (amd64)', message)
        # Listed without the epoch
        self.assertEqual(ctx.exception.candidates, ["24.0.6-1~debian.12~bookworm"])


if __name__ == "__main__":
    unittest.main()
