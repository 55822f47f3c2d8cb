import pytest
import numpy as np
import matplotlib

matplotlib.use('Agg')

from geneticshorts import ChromosomeEngine  # noqa: E402

# fixtures

@pytest.fixture
def rng():
    yield np.random.default_rng(12345)

@pytest.fixture
def engine(rng):
    yield ChromosomeEngine(amount = 8, set = 4, rng = rng)

@pytest.fixture
def population(engine):
    yield engine.create_population(200)
