"""
Tests for release_index.domain.installers.

Covers:
- URL-pattern detection of user/system installers
- Suffix precedence over URL patterns
- Derivation of system installer URLs
- Pair resolution and flattening of whole platform maps
- Custom classifier strategies
"""

from __future__ import annotations

from release_index.domain.installers import (
    InstallerClassifier,
    collect_windows_installers,
    derive_system_url,
    detect_setup_type,
    flatten_platforms,
    resolve_installers,
)
from release_index.domain.models import PlatformLink, SetupType, WindowsInstallers

from .conftest import SYSTEM_URL, USER_URL


class TestDetectSetupType:
    """Tests for detect_setup_type."""

    def test_non_windows_platform_is_unknown(self):
        assert detect_setup_type(USER_URL, "linux-x64") is SetupType.UNKNOWN

    def test_user_setup_path(self):
        assert detect_setup_type("https://x/user-setup/setup.exe", "win32-x64") is SetupType.USER

    def test_user_setup_filename(self):
        assert detect_setup_type("https://x/CursorUserSetup.exe", "win32-x64") is SetupType.USER

    def test_system_setup_path(self):
        assert detect_setup_type("https://x/system-setup/setup.exe", "win32-x64") is SetupType.SYSTEM

    def test_system_setup_filename(self):
        assert detect_setup_type("https://x/CursorSetup.exe", "win32-x64") is SetupType.SYSTEM

    def test_unrecognised_url(self):
        assert detect_setup_type("https://x/installer.exe", "win32-x64") is SetupType.UNKNOWN

    def test_prefix_without_dash_counts_as_windows(self):
        assert detect_setup_type(USER_URL, "win32") is SetupType.USER


class TestDeriveSystemUrl:
    """Tests for derive_system_url."""

    def test_replaces_path_and_filename(self):
        assert derive_system_url(USER_URL) == SYSTEM_URL

    def test_only_path_pattern(self):
        assert derive_system_url("https://x/user-setup/setup.exe") == "https://x/system-setup/setup.exe"

    def test_only_filename_pattern(self):
        assert derive_system_url("https://x/CursorUserSetup.exe") == "https://x/CursorSetup.exe"

    def test_not_a_user_installer(self):
        assert derive_system_url(SYSTEM_URL) is None
        assert derive_system_url("https://x/installer.exe") is None

    def test_empty(self):
        assert derive_system_url("") is None
        assert derive_system_url(None) is None


class TestClassify:
    """Tests for suffix-over-URL precedence."""

    def test_user_suffix_wins_over_system_url(self):
        classifier = InstallerClassifier(
            user_markers=("/user-setup/",),
            system_markers=("/system-setup/",),
            user_to_system=(),
        )
        assert classifier.classify("https://x/system-setup/a.exe", "win32-x64-user") is SetupType.USER

    def test_system_suffix_wins_over_user_url(self):
        groups = collect_windows_installers({"win32-x64-system": USER_URL})
        assert groups["win32-x64"].system == USER_URL
        assert groups["win32-x64"].user is None

    def test_alias_key_falls_back_to_url(self):
        groups = collect_windows_installers({"windows": USER_URL})
        assert groups["win32-x64"].user == USER_URL


class TestResolveInstallers:
    """Tests for resolve_installers."""

    def test_both_present(self):
        link = resolve_installers(WindowsInstallers(user=USER_URL, system=SYSTEM_URL))
        assert link == PlatformLink(url=USER_URL, system_url=SYSTEM_URL)

    def test_only_user_derives_system(self):
        link = resolve_installers(WindowsInstallers(user=USER_URL))
        assert link.url == USER_URL
        assert link.system_url == SYSTEM_URL

    def test_only_user_not_derivable(self):
        link = resolve_installers(WindowsInstallers(user="https://x/other.exe"))
        assert link == PlatformLink(url="https://x/other.exe")

    def test_only_system(self):
        link = resolve_installers(WindowsInstallers(system=SYSTEM_URL))
        assert link.url == SYSTEM_URL
        assert link.system_url is None

    def test_neither(self):
        assert resolve_installers(WindowsInstallers()) is None


class TestFlattenPlatforms:
    """Tests for flatten_platforms."""

    def test_pairs_user_and_system_keys(self):
        result = flatten_platforms(
            {
                "win32-x64-user": USER_URL,
                "win32-x64-system": SYSTEM_URL,
                "linux-x64": "https://x/linux.AppImage",
            }
        )
        assert result == {
            "win32-x64": PlatformLink(url=USER_URL, system_url=SYSTEM_URL),
            "linux-x64": PlatformLink(url="https://x/linux.AppImage"),
        }

    def test_windows_entry_without_known_variant_is_dropped(self):
        result = flatten_platforms({"win32-x64": "https://x/installer.exe"})
        assert result == {}

    def test_keys_in_display_order(self):
        result = flatten_platforms(
            {
                "linux": "https://x/linux",
                "mac": "https://x/mac",
                "win32-arm64-user": "https://x/arm/user-setup/a.exe",
            }
        )
        assert list(result) == ["win32-arm64", "darwin-universal", "linux-x64"]

    def test_custom_classifier(self):
        classifier = InstallerClassifier(
            user_markers=("-user.exe",),
            system_markers=("-machine.exe",),
            user_to_system=(("-user.exe", "-machine.exe"),),
        )
        result = flatten_platforms({"win32-x64": "https://x/app-user.exe"}, classifier)
        assert result["win32-x64"] == PlatformLink(
            url="https://x/app-user.exe", system_url="https://x/app-machine.exe"
        )
