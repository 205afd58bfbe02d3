import matplotlib

matplotlib.use("Agg")

import pytest

from blocksim import Bus, make_sig_list


@pytest.fixture
def source_bus():
    """Three owned signals acting as an external producer."""
    return Bus.from_sigdefs(make_sig_list(("a", "V"), ("b", "V"), ("c", "V")))
