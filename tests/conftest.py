import pytest

from twostage.stats.schemes.binary_two_stage import (
    ALWAYS_REJECT,
    NEVER_REJECT,
    Design,
)


@pytest.fixture
def scenario_design() -> Design:
    """n1 = 16: futility stop below 4 responses, efficacy stop above 12."""
    n, c = [], []
    for x1 in range(17):
        if x1 <= 3:
            n.append(16)
            c.append(NEVER_REJECT)
        elif x1 <= 12:
            n.append(34)
            c.append(11)
        else:
            n.append(16)
            c.append(ALWAYS_REJECT)
    return Design(n, c, label="scenario")


@pytest.fixture
def small_design() -> Design:
    """n1 = 4 with outcome-dependent stage-two sizes and critical values."""
    return Design(
        [4, 4, 9, 11, 4],
        [NEVER_REJECT, NEVER_REJECT, 4, 5, ALWAYS_REJECT],
    )
