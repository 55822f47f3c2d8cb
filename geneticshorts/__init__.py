from .core import (
    Chromosome,
    ChromosomeEngine,
    AnswerBuffer,
    History,
    GeneticShortsError,
    ConfigurationError,
    GenerationLimitError,
    NUM_BITS,
    OUTPUT_SIZE,
    )
