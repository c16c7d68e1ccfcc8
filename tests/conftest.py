"""Global test configuration — runs before any test module imports."""
import os

import pytest

# Settings.from_env() reads these; keep real env from leaking into tests
os.environ["CREDTRUST_ADMIN"] = "ST1PQHQKV0RJXZFY1DGX8MNSNYVE3VGZJSRTPGZGM"
os.environ.pop("CREDTRUST_DB_PATH", None)

ADMIN = os.environ["CREDTRUST_ADMIN"]
REGISTRAR = "ST2CY5V39NHDPWSXMW9QDT3HC3GD6Q6XX4CFRK9AG"
STUDENT = "ST1STUDENT1234567890ABCDEF"
OUTSIDER = "ST3OUTSIDER0000000000000000"


@pytest.fixture
def network():
    from credtrust import TrustNetwork
    return TrustNetwork(admin=ADMIN)


@pytest.fixture
def harvard(network):
    """Network with institution 1 registered, verified and REGISTRAR granted."""
    inst = network.institutions
    inst.register_institution(ADMIN, 1, "Harvard University", "USA", "https://harvard.edu")
    inst.verify_institution(ADMIN, 1)
    inst.add_institution_admin(ADMIN, 1, REGISTRAR)
    return network
