from __future__ import annotations

import pytest

from config import get_settings
from scrubber.catalog import get_catalog
from scrubber.pipeline import SubstitutionPipeline
from scrubber.validator import ContextualValidator


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    """Keep settings from the developer's environment out of the tests."""
    for name in ("LOG_LEVEL", "CATALOG_FILE", "USE_ROLE_NAMES", "PRESERVE_STRUCTURE"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def catalog():
    return get_catalog()


@pytest.fixture
def pipeline(catalog) -> SubstitutionPipeline:
    return SubstitutionPipeline(catalog)


@pytest.fixture
def validator(catalog) -> ContextualValidator:
    return ContextualValidator(catalog)


@pytest.fixture
def sample_post():
    """A homelab write-up draft full of internal details."""
    return (
        "---\n"
        "title: Rebuilding my DNS\n"
        "---\n\n"
        "I SSH'd into dns1.mareoxlan.local (192.168.10.111) as mareox and\n"
        "pointed the secondary dns2 at 192.168.10.112. The old box at\n"
        "192.168.50.7 and the lab VM on 10.0.40.12 are gone.\n"
        "Proxmox UI: https://pve-mini2.mareoxlan.local:8006\n"
        "Dashboards live on homarr, logs go to graylog.\n"
        "Login with root@pam.\n"
    )


@pytest.fixture
def sanitized_post():
    """``sample_post`` after a default sanitize pass."""
    return (
        "---\n"
        "title: Rebuilding my DNS\n"
        "---\n\n"
        "I SSH'd into DNS-Primary (DNS-Primary) as <YOUR_USER> and\n"
        "pointed the secondary DNS-Secondary at DNS-Secondary. The old box at\n"
        "<YOUR_IP> and the lab VM on <YOUR_IP> are gone.\n"
        "Proxmox UI: https://Proxmox-Node-1:8006\n"
        "Dashboards live on Dashboard, logs go to Log-Server.\n"
        "Login with <YOUR_ADMIN_USER>.\n"
    )
