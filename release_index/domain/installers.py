"""
Classification of Windows installer URLs into user-level and system-level
variants.

Upstream sources do not always say which installer a URL points to, so the
variant is guessed from naming patterns in the URL. The patterns live in an
`InstallerClassifier` instance so new naming schemes can be added without
touching the cache builder or the response layer.
"""
from __future__ import annotations

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from release_index.domain.models import PlatformLink, SetupType, WindowsInstallers
from release_index.domain.platforms import is_windows, normalize_platform, sort_platforms


class InstallerClassifier(BaseModel):
    """
    URL-pattern strategy for telling user installers from system installers.

    Attributes:
        user_markers: Substrings identifying a user-level installer URL.
        system_markers: Substrings identifying a system-level installer URL.
        user_to_system: Ordered (old, new) substring replacements turning a
            user installer URL into the matching system installer URL.
    """

    model_config = ConfigDict(frozen=True)

    user_markers: Tuple[str, ...]
    system_markers: Tuple[str, ...]
    user_to_system: Tuple[Tuple[str, str], ...]

    def detect(self, url: str, platform: str) -> SetupType:
        """
        Guess the installer variant from the URL alone.
        """
        if not platform.startswith("win32"):
            return SetupType.UNKNOWN
        if any(marker in url for marker in self.user_markers):
            return SetupType.USER
        if any(marker in url for marker in self.system_markers):
            return SetupType.SYSTEM
        return SetupType.UNKNOWN

    def classify(self, url: str, platform: str) -> SetupType:
        """
        Resolve the variant of one raw Windows entry.

        An explicit `-user`/`-system` suffix on the raw key wins; otherwise the
        URL patterns decide. Aliases such as `windows` are checked under their
        canonical `win32-*` name.
        """
        if platform.endswith("-user"):
            return SetupType.USER
        if platform.endswith("-system"):
            return SetupType.SYSTEM
        return self.detect(url, normalize_platform(platform))

    def derive_system_url(self, user_url: Optional[str]) -> Optional[str]:
        """
        Build the system installer URL matching a user installer URL, or None
        when the URL does not look like a user installer.
        """
        if not user_url or not any(marker in user_url for marker in self.user_markers):
            return None
        system_url = user_url
        for old, new in self.user_to_system:
            system_url = system_url.replace(old, new, 1)
        return system_url


CURSOR_INSTALLERS = InstallerClassifier(
    user_markers=("/user-setup/", "CursorUserSetup"),
    system_markers=("/system-setup/", "CursorSetup"),
    user_to_system=(
        ("/user-setup/", "/system-setup/"),
        ("CursorUserSetup", "CursorSetup"),
    ),
)


def detect_setup_type(
    url: str, platform: str, classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> SetupType:
    return classifier.detect(url, platform)


def derive_system_url(
    user_url: Optional[str], classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> Optional[str]:
    return classifier.derive_system_url(user_url)


def collect_windows_installers(
    platforms: Dict[str, str], classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> Dict[str, WindowsInstallers]:
    """
    Group the Windows entries of one version's platform map by canonical key.

    Entries whose variant cannot be determined are ignored. When two entries
    resolve to the same slot, the later one wins.
    """
    grouped: Dict[str, WindowsInstallers] = {}
    for raw_key, url in platforms.items():
        canonical = normalize_platform(raw_key)
        if not is_windows(canonical):
            continue
        installers = grouped.setdefault(canonical, WindowsInstallers())
        setup_type = classifier.classify(url, raw_key)
        if setup_type is SetupType.USER:
            installers.user = url
        elif setup_type is SetupType.SYSTEM:
            installers.system = url
    return grouped


def resolve_installers(
    installers: WindowsInstallers, classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> Optional[PlatformLink]:
    """
    Pick the primary URL and the auxiliary system URL for a Windows platform.

    The user installer is always preferred as the primary URL. Returns None
    when neither variant is known.
    """
    if installers.user and installers.system:
        return PlatformLink(url=installers.user, system_url=installers.system)
    if installers.user:
        return PlatformLink(
            url=installers.user,
            system_url=classifier.derive_system_url(installers.user),
        )
    if installers.system:
        return PlatformLink(url=installers.system)
    return None


def flatten_platforms(
    platforms: Dict[str, str], classifier: InstallerClassifier = CURSOR_INSTALLERS
) -> Dict[str, PlatformLink]:
    """
    Turn a version's raw platform map into canonical key -> download link.

    Non-Windows entries map straight through (a later raw key wins when two
    normalise to the same canonical key); Windows entries are paired up and
    resolved with `resolve_installers`. Entries without a usable URL are
    dropped. Keys come back in display order.
    """
    links: Dict[str, PlatformLink] = {}
    for raw_key, url in platforms.items():
        canonical = normalize_platform(raw_key)
        if is_windows(canonical) or not url:
            continue
        links[canonical] = PlatformLink(url=url)

    for canonical, installers in collect_windows_installers(platforms, classifier).items():
        link = resolve_installers(installers, classifier)
        if link is not None:
            links[canonical] = link

    return {name: links[name] for name in sort_platforms(links)}
