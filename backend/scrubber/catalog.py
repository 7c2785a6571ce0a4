from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

from pydantic import ValidationError

from schemas.api import CatalogFile

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Default identifier tables
# ---------------------------------------------------------------------------

DOMAIN_ROOT = "mareoxlan"
ACCOUNT_NAME = "mareox"

# Host token -> role label.  Tokens are lowercase, labels are Title-Case.
HOSTNAME_ROLES: dict[str, str] = {
    # Proxmox cluster
    "pve-mini2": "Proxmox-Node-1",
    "pve-mini3": "Proxmox-Node-2",
    "pve-mini4": "Proxmox-Node-3",
    "pve-mini5": "Proxmox-Node-4",
    "pve-mini6": "Proxmox-Node-5",
    "pbs": "Backup-Server",
    # DNS / Pi-hole
    "dns1": "DNS-Primary",
    "dns2": "DNS-Secondary",
    "pihole1": "DNS-Primary",
    "pihole2": "DNS-Secondary",
    "dns": "DNS-VIP",
    "dns30": "DNS-VLAN30",
    "dns40": "DNS-VLAN40",
    "dns50": "DNS-VLAN50",
    # Storage
    "nas920": "NAS-Primary",
    "nas719": "NAS-Secondary",
    "nas1": "NAS-Primary",
    "nas2": "NAS-Secondary",
    # Network
    "mx-fw": "Firewall-Main",
    "mx-fw-mgmt": "Firewall-Mgmt",
    "fw-mgmt": "Firewall-Mgmt",
    "vm-fw1": "Firewall-VM-1",
    "vm-fw2": "Firewall-VM-2",
    "vm-fw30": "Firewall-VM-30",
    "vm-fwha1": "Firewall-HA-1",
    "vm-fwha2": "Firewall-HA-2",
    "panorama": "Panorama",
    "expedition": "Expedition",
    # UniFi
    "ui": "UniFi-Controller",
    "ui-sw": "UniFi-Switch",
    "usw-24-g2": "UniFi-Switch-24",
    "u6-lr": "UniFi-AP-LR",
    "u6-up": "UniFi-AP-Pro",
    "exp-lr": "UniFi-Gateway",
    # Services
    "caddy": "Reverse-Proxy",
    "caddy1": "Reverse-Proxy-1",
    "caddy2": "Reverse-Proxy-2",
    "n8n": "Automation-Server",
    "semaphore": "Ansible-Server",
    "graylog": "Log-Server",
    "vaultwarden": "Password-Manager",
    "myspeed": "Speed-Monitor",
    "homarr": "Dashboard",
    "portainer": "Container-Manager",
    "dkr-main": "Docker-Host-Main",
    "lxc-xsoar": "XSOAR-Server",
}

ADDRESS_ROLES: dict[str, str] = {
    # Proxmox
    "192.168.30.202": "Proxmox-Node-1",
    "192.168.30.203": "Proxmox-Node-2",
    "192.168.30.204": "Proxmox-Node-3",
    "192.168.30.205": "Proxmox-Node-4",
    "192.168.30.206": "Proxmox-Node-5",
    "192.168.30.208": "Backup-Server",
    # DNS
    "192.168.10.110": "DNS-VIP",
    "192.168.10.111": "DNS-Primary",
    "192.168.10.112": "DNS-Secondary",
    "192.168.30.110": "DNS-VLAN30",
    # NAS
    "192.168.10.100": "NAS-Primary",
    "192.168.10.102": "NAS-Secondary",
    # Firewall
    "192.168.10.1": "Firewall-Main",
    "10.254.254.99": "Firewall-Mgmt",
    # UniFi
    "192.168.30.140": "UniFi-Controller",
    "192.168.30.250": "UniFi-Switch",
    "192.168.30.251": "UniFi-AP-LR",
    "192.168.30.252": "UniFi-AP-Pro",
    "192.168.30.253": "UniFi-Gateway",
    # Services
    "192.168.30.220": "Panorama",
    "192.168.30.126": "Expedition",
    "192.168.30.128": "XSOAR-Server",
}

# Literal domain -> placeholder.  Applied in order, so a more specific
# domain must precede any domain it ends with.
DOMAIN_RULES: list[tuple[str, str]] = [
    ("loc.mareoxlan.com", "<YOUR_LOCAL_DOMAIN>"),
    ("mareoxlan2.synology.me", "<YOUR_SYNOLOGY_DOMAIN_2>"),
    ("mareoxlan.synology.me", "<YOUR_SYNOLOGY_DOMAIN>"),
    ("mareoxlan.local", "<YOUR_DOMAIN>"),
    ("mareoxlan.com", "<YOUR_PUBLIC_DOMAIN>"),
]

USERNAME_RULES: list[tuple[str, str]] = [
    ("mareox", "<YOUR_USER>"),
    ("root@pam", "<YOUR_ADMIN_USER>"),
]

# (name, compiled pattern).  Detection only -- never used for substitution.
SECRET_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    ("password", re.compile(r"password\s*[:=]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE)),
    ("api_key", re.compile(r"api[_-]?key\s*[:=]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE)),
    ("token", re.compile(r"token\s*[:=]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE)),
    ("secret", re.compile(r"secret\s*[:=]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE)),
    ("credential", re.compile(r"credentials?\s*[:=]\s*[\"']?[^\"'\s]+[\"']?", re.IGNORECASE)),
    ("bearer", re.compile(r"bearer\s+[a-zA-Z0-9._-]+", re.IGNORECASE)),
    ("authorization_header", re.compile(r"authorization:\s*bearer\s+[a-zA-Z0-9._-]+", re.IGNORECASE)),
    ("ssh_public_key", re.compile(r"ssh-rsa\s+[A-Za-z0-9+/=]+")),
    ("private_key_block", re.compile(r"-----BEGIN\s+(?:RSA\s+)?PRIVATE\s+KEY-----")),
]

# Host-looking tokens that are product names, not machines.
SOFTWARE_ALLOWLIST: frozenset[str] = frozenset({
    "graylog", "caddy", "n8n", "portainer", "homarr", "vaultwarden",
    "semaphore", "panorama", "expedition",
})

# Suffixes consumed together with a known host name by the pipeline.
HOST_DOMAIN_SUFFIXES: tuple[str, ...] = ("local", "com")

# ---------------------------------------------------------------------------
# Private address ranges
# ---------------------------------------------------------------------------

# Every address pattern (known literals, ranges, validator candidates) is
# wrapped in the same guard: no digit or dot before, no digit or further
# octet after.  Letters and "_" are valid neighbours ("eth0_192.168.1.20").
ADDRESS_START = r"(?<![\d.])"
ADDRESS_END = r"(?!\d|\.\d)"

# (range name, strict pattern, shape-preserving placeholder)
PRIVATE_ADDRESS_RANGES: list[tuple[str, re.Pattern[str], str]] = [
    (
        "192.168.0.0/16",
        re.compile(rf"{ADDRESS_START}192\.168\.\d{{1,3}}\.\d{{1,3}}{ADDRESS_END}"),
        "192.168.X.X",
    ),
    (
        "10.0.0.0/8",
        re.compile(rf"{ADDRESS_START}10\.\d{{1,3}}\.\d{{1,3}}\.\d{{1,3}}{ADDRESS_END}"),
        "10.X.X.X",
    ),
    (
        "172.16.0.0/12",
        re.compile(
            rf"{ADDRESS_START}172\.(?:1[6-9]|2[0-9]|3[0-1])\.\d{{1,3}}\.\d{{1,3}}{ADDRESS_END}"
        ),
        "172.X.X.X",
    ),
]

# All three ranges in one pass, for counting and the safety-net re-scan.
PRIVATE_ADDRESS_RE = re.compile(
    rf"{ADDRESS_START}(?:192\.168|10\.\d{{1,3}}|172\.(?:1[6-9]|2[0-9]|3[0-1]))"
    rf"\.\d{{1,3}}\.\d{{1,3}}{ADDRESS_END}"
)

ADDRESS_PLACEHOLDER = "<YOUR_IP>"
DOMAIN_PLACEHOLDER = "<YOUR_DOMAIN>"
PLACEHOLDER_MARKER = "X"


class CatalogError(Exception):
    """Raised when a catalog file cannot be read or does not validate."""


# ---------------------------------------------------------------------------
# Compiled entries
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HostEntry:
    """A known host token, its role label and its substitution pattern."""

    token: str
    role: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class AddressEntry:
    address: str
    role: str
    pattern: re.Pattern[str]


@dataclass(frozen=True)
class SubstitutionRule:
    pattern: re.Pattern[str]
    replacement: str
    source: str = ""  # literal the pattern was built from


@dataclass(frozen=True)
class SecretPattern:
    name: str
    pattern: re.Pattern[str]

    @property
    def source(self) -> str:
        """Pattern text with case-insensitivity spelled as an inline flag."""
        if self.pattern.flags & re.IGNORECASE and not self.pattern.pattern.startswith("(?i)"):
            return "(?i)" + self.pattern.pattern
        return self.pattern.pattern


class IdentifierCatalog:
    """Read-only identifier tables with every derived pattern precompiled.

    Host entries are kept in descending token length so that ``dns1`` is
    substituted before ``dns``; otherwise the shorter token would fire first
    and leave the distinguishing suffix behind.  Address entries are matched
    by exact literal value and need no ordering.

    Instances hold no mutable state and can be shared freely.
    """

    def __init__(
        self,
        hostname_roles: Mapping[str, str],
        address_roles: Mapping[str, str],
        domain_rules: Iterable[tuple[str, str]],
        username_rules: Iterable[tuple[str, str]],
        secret_patterns: Iterable[tuple[str, re.Pattern[str]]],
        software_allowlist: Iterable[str],
        domain_root: str = DOMAIN_ROOT,
        account_name: str = ACCOUNT_NAME,
        host_domain_suffixes: Iterable[str] = HOST_DOMAIN_SUFFIXES,
    ) -> None:
        self.hostname_roles: Mapping[str, str] = MappingProxyType(dict(hostname_roles))
        self.address_roles: Mapping[str, str] = MappingProxyType(dict(address_roles))
        self.software_allowlist: frozenset[str] = frozenset(software_allowlist)
        self.domain_root = domain_root
        self.account_name = account_name

        suffixes = "|".join(re.escape(s) for s in host_domain_suffixes)
        self._host_suffix = rf"(?:\.{re.escape(domain_root)}\.(?:{suffixes}))?"

        ordered = sorted(self.hostname_roles.items(), key=lambda kv: len(kv[0]), reverse=True)
        self.host_entries: tuple[HostEntry, ...] = tuple(
            HostEntry(token=token, role=role, pattern=self._host_pattern(token))
            for token, role in ordered
        )
        self.address_entries: tuple[AddressEntry, ...] = tuple(
            AddressEntry(
                address=address,
                role=role,
                pattern=re.compile(rf"{ADDRESS_START}{re.escape(address)}{ADDRESS_END}"),
            )
            for address, role in self.address_roles.items()
        )
        # A domain glued to a leading label ("hostmareoxlan.com") is consumed
        # whole, so the placeholder never exposes a new word boundary.
        self.domain_rules: tuple[SubstitutionRule, ...] = tuple(
            SubstitutionRule(
                re.compile(rf"(?<![\w-])[\w-]*{re.escape(domain)}(?![\w-])", re.IGNORECASE),
                replacement,
                source=domain,
            )
            for domain, replacement in domain_rules
        )
        self.username_rules: tuple[SubstitutionRule, ...] = tuple(
            SubstitutionRule(
                re.compile(rf"\b{re.escape(user)}\b", re.IGNORECASE), replacement, source=user
            )
            for user, replacement in username_rules
        )
        self.secret_patterns: tuple[SecretPattern, ...] = tuple(
            SecretPattern(name=name, pattern=pattern) for name, pattern in secret_patterns
        )

        # One alternation over every host, longest first, for raw counting.
        if self.host_entries:
            alternation = "|".join(re.escape(e.token) for e in self.host_entries)
            self.host_scan_pattern: re.Pattern[str] | None = re.compile(
                rf"\b(?:{alternation}){self._host_suffix}\b"
            )
        else:
            self.host_scan_pattern = None

        # Leftover domain root touching a dot on either side.
        root = re.escape(domain_root)
        self.domain_fragment_pattern = re.compile(
            rf"(?<=\.){root}\b|\b{root}(?=\.)", re.IGNORECASE
        )

        self._warn_on_rematchable_roles()

    def _host_pattern(self, token: str) -> re.Pattern[str]:
        # Case-sensitive on purpose: Title-Case role labels never re-match.
        return re.compile(rf"\b{re.escape(token)}{self._host_suffix}\b")

    def _warn_on_rematchable_roles(self) -> None:
        labels = set(self.hostname_roles.values()) | set(self.address_roles.values())
        for label in sorted(labels):
            for entry in self.host_entries:
                if entry.pattern.search(label):
                    logger.warning(
                        "Role label %r is matched by host pattern for %r; "
                        "repeated sanitization may rewrite it",
                        label, entry.token,
                    )
                    break

    def __repr__(self) -> str:
        return (
            f"IdentifierCatalog(hosts={len(self.host_entries)}, "
            f"addresses={len(self.address_entries)}, "
            f"domain_rules={len(self.domain_rules)}, "
            f"username_rules={len(self.username_rules)})"
        )


# ---------------------------------------------------------------------------
# Construction helpers
# ---------------------------------------------------------------------------


@lru_cache
def get_catalog() -> IdentifierCatalog:
    """Return the process-wide catalog built from the default tables."""
    return IdentifierCatalog(
        hostname_roles=HOSTNAME_ROLES,
        address_roles=ADDRESS_ROLES,
        domain_rules=DOMAIN_RULES,
        username_rules=USERNAME_RULES,
        secret_patterns=SECRET_PATTERNS,
        software_allowlist=SOFTWARE_ALLOWLIST,
    )


def load_catalog(path: str | Path) -> IdentifierCatalog:
    """Build a catalog from a JSON file.

    Any table the file leaves out falls back to the built-in default.  Secret
    patterns are regular expressions; use an inline ``(?i)`` flag for
    case-insensitive ones.

    Raises
    ------
    CatalogError
        If the file is missing, is not valid JSON, does not match the
        catalog schema, or contains an invalid secret pattern.
    """
    path = Path(path)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        data = CatalogFile.model_validate(raw)
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog file {path} is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise CatalogError(f"Catalog file {path} is invalid: {exc}") from exc

    if data.secret_patterns is None:
        secret_patterns = SECRET_PATTERNS
    else:
        try:
            secret_patterns = [
                (name, re.compile(pattern))
                for name, pattern in data.secret_patterns.items()
            ]
        except re.error as exc:
            raise CatalogError(f"Invalid secret pattern in {path}: {exc}") from exc

    catalog = IdentifierCatalog(
        hostname_roles=_or_default(data.hostname_roles, HOSTNAME_ROLES),
        address_roles=_or_default(data.address_roles, ADDRESS_ROLES),
        domain_rules=_rules_or_default(data.domain_rules, DOMAIN_RULES),
        username_rules=_rules_or_default(data.username_rules, USERNAME_RULES),
        secret_patterns=secret_patterns,
        software_allowlist=_or_default(data.software_allowlist, SOFTWARE_ALLOWLIST),
        domain_root=data.domain_root or DOMAIN_ROOT,
        account_name=data.account_name or ACCOUNT_NAME,
        host_domain_suffixes=_or_default(data.host_domain_suffixes, HOST_DOMAIN_SUFFIXES),
    )
    logger.info("Loaded catalog from %s: %r", path, catalog)
    return catalog


def _or_default(value, default):
    return default if value is None else value


def _rules_or_default(rules, default) -> list[tuple[str, str]]:
    if rules is None:
        return list(default)
    return [(rule.match, rule.replacement) for rule in rules]
