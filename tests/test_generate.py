import logging
import pytest
import numpy as np

from geneticshorts import (ChromosomeEngine, AnswerBuffer, Chromosome,
    ConfigurationError, GenerationLimitError, OUTPUT_SIZE)

POWERS_OF_TWO = {1 << i for i in range(16)}

# tests

def test_generate_any_nonzero(rng):
    """
    With 16 bits allowed, every nonzero chromosome is an answer
    """
    engine = ChromosomeEngine(amount = 8, set = 16, rng = rng)
    values = engine.generate()

    assert values.dtype == np.uint16
    assert len(values) == OUTPUT_SIZE
    assert all(1 <= value <= 0xFFFF for value in values.tolist())
    assert engine.history.generations == 1

def test_generate_single_bit(rng):
    engine = ChromosomeEngine(amount = 8, set = 1, rng = rng)
    values = engine.generate()
    assert len(values) == OUTPUT_SIZE
    assert set(values.tolist()) <= POWERS_OF_TWO

@pytest.mark.parametrize("target", [2, 3, 5])
def test_generate_bounded_popcount(target):
    engine = ChromosomeEngine(amount = 50, set = target, seed = target)
    values = engine.generate()
    assert all(0 < bin(value).count('1') <= target
               for value in values.tolist())

def test_generate_is_reproducible():
    first = ChromosomeEngine(amount = 20, set = 2, seed = 99).generate()
    second = ChromosomeEngine(amount = 20, set = 2, seed = 99).generate()
    assert first.tolist() == second.tolist()

def test_generate_accepts_at_least_amount(rng):
    engine = ChromosomeEngine(amount = 300, set = 2, rng = rng)
    engine.generate()
    assert sum(engine.history.accepted_history) >= 300
    assert all(fit.size == 200 for fit in engine.history.fitness_history)

def test_generate_small_population(rng):
    engine = ChromosomeEngine(amount = 8, set = 2, rng = rng,
        population_size = 10)
    assert len(engine.generate()) == OUTPUT_SIZE

def test_generation_limit(rng):
    engine = ChromosomeEngine(amount = 10 ** 6, set = 1, rng = rng,
        max_generations = 3)
    with pytest.raises(GenerationLimitError) as excinfo:
        engine.generate()
    assert excinfo.value.generations == 3
    assert excinfo.value.accepted < 10 ** 6
    assert engine.history.generations == 3

def test_progress_bar(rng, capsys):
    engine = ChromosomeEngine(amount = 8, set = 16, rng = rng,
        progress_bars = 1)
    assert len(engine.generate()) == OUTPUT_SIZE
    assert "Accepting answers" in capsys.readouterr().err

def test_logging(rng, caplog):
    engine = ChromosomeEngine(amount = 8, set = 16, rng = rng, verbose = 1)
    with caplog.at_level(logging.INFO, logger = 'geneticshorts.core'):
        engine.generate()
    assert "Done after 1 generations" in caplog.text

@pytest.mark.parametrize("target", [0, 17, -1, 1.5, None])
def test_invalid_set(target):
    with pytest.raises(ConfigurationError):
        ChromosomeEngine(amount = 8, set = target)

@pytest.mark.parametrize("amount", [0, 1, 7, -8, 8.0, True])
def test_invalid_amount(amount):
    with pytest.raises(ConfigurationError):
        ChromosomeEngine(amount = amount, set = 1)

@pytest.mark.parametrize("kwargs", [
    {'population_size' : 3},
    {'population_size' : 200.0},
    {'graded_retain_rate' : 0.0},
    {'nongraded_retain_rate' : 1.0},
    {'graded_retain_rate' : 0.6, 'nongraded_retain_rate' : 0.4},
    {'mutation_threshold' : 100},
    {'mutation_threshold' : -1},
    {'max_generations' : 0},
    ])
def test_invalid_options(kwargs):
    with pytest.raises(ConfigurationError):
        ChromosomeEngine(amount = 8, set = 1, **kwargs)

def test_configuration_error_is_value_error():
    with pytest.raises(ValueError):
        ChromosomeEngine(amount = 8, set = 0)

def test_answer_buffer_keeps_first_answers():
    buffer = AnswerBuffer(capacity = 3)
    for value in range(1, 6):
        buffer.add(Chromosome(value))

    assert buffer.count == 5
    assert len(buffer) == 3
    assert buffer.values().tolist() == [1, 2, 3]
    assert buffer.values().dtype == np.uint16

def test_answer_buffer_empty():
    buffer = AnswerBuffer()
    assert buffer.count == 0
    assert buffer.values().size == 0

@pytest.mark.parametrize("memory", [0, -1, 2.5, 'all', None])
def test_invalid_memory(memory):
    with pytest.raises(ConfigurationError):
        ChromosomeEngine(amount = 8, set = 1, memory = memory)
