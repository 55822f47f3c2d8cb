import numpy as np
import logging
import numbers
from argparse import ArgumentParser

# Plots
import matplotlib.pyplot as plt

# Progress bars
from tqdm import tqdm

NUM_BITS = 16
MAX_VALUE = (1 << NUM_BITS) - 1

# Number of values returned by ChromosomeEngine.generate
OUTPUT_SIZE = 8

class GeneticShortsError(Exception):
    ''' Base class for errors raised by the engine. '''

class ConfigurationError(GeneticShortsError, ValueError):
    ''' Raised when an engine is constructed with invalid parameters. '''

class GenerationLimitError(GeneticShortsError, RuntimeError):
    ''' Raised when the generation bound runs out before enough answers
        have been accepted.

    INPUT
        (int) generations: number of generations evolved
        (int) accepted: number of answers accepted so far
        (int) amount: number of answers requested
    '''

    def __init__(self, generations, accepted, amount):
        self.generations = generations
        self.accepted = accepted
        self.amount = amount
        super().__init__(f"Accepted {accepted} of {amount} answers within "
                         f"{generations} generations")

class Chromosome():
    ''' Immutable 16-bit chromosome. Bit 0 is the most significant bit,
        so the bits read left to right like the binary representation
        of the value.

    INPUT
        (int) value = 0: unsigned integer between 0 and 65535
    '''

    def __init__(self, value = 0):
        value = int(value)
        if not 0 <= value <= MAX_VALUE:
            raise ValueError(f"{value} is not a {NUM_BITS}-bit unsigned "
                             "integer")
        self._value = value

    @classmethod
    def from_bits(cls, bits):
        ''' Create a chromosome from a sequence of 16 zeroes and ones,
            most significant bit first. '''
        bits = [int(bit) for bit in bits]
        if len(bits) != NUM_BITS:
            raise ValueError(f"Expected {NUM_BITS} bits, got {len(bits)}")
        if any(bit not in (0, 1) for bit in bits):
            raise ValueError("Bits must be either 0 or 1")

        value = 0
        for bit in bits:
            value = (value << 1) | bit
        return cls(value)

    @property
    def value(self):
        return self._value

    @property
    def bits(self):
        return tuple(self.get(idx) for idx in range(NUM_BITS))

    def _mask(self, idx):
        idx = int(idx)
        if not 0 <= idx < NUM_BITS:
            raise IndexError(f"Bit index {idx} out of range")
        return 1 << (NUM_BITS - 1 - idx)

    def get(self, idx):
        return int(bool(self._value & self._mask(idx)))

    def set(self, idx, bit):
        ''' Return a copy with the bit at idx set to the given value. '''
        mask = self._mask(idx)
        if bit:
            return Chromosome(self._value | mask)
        return Chromosome(self._value & ~mask)

    def flip(self, idx):
        ''' Return a copy with the bit at idx toggled. '''
        return Chromosome(self._value ^ self._mask(idx))

    def popcount(self):
        return bin(self._value).count('1')

    def __int__(self):
        return self._value

    def __str__(self):
        return format(self._value, f'0{NUM_BITS}b')

    def __repr__(self):
        return f"Chromosome('{self}')"

    def __eq__(self, other):
        if not isinstance(other, Chromosome):
            return NotImplemented
        return self._value == other._value

    def __hash__(self):
        return hash(self._value)

class AnswerBuffer():
    ''' Counts accepted chromosomes, keeping only the first few of them.

    INPUT
        (int) capacity = 8: number of chromosomes to keep
    '''

    def __init__(self, capacity = OUTPUT_SIZE):
        self.capacity = capacity
        self.count = 0
        self.chromosomes = []

    def add(self, chromosome):
        self.count += 1
        if len(self.chromosomes) < self.capacity:
            self.chromosomes.append(chromosome)
        return self

    def __len__(self):
        return len(self.chromosomes)

    def values(self):
        return np.array([int(chromosome) for chromosome in self.chromosomes],
            dtype = np.uint16)

class ChromosomeEngine():
    ''' Genetic algorithm searching for 16-bit unsigned integers with at
        least one and at most `set` bits set.

    INPUT
        (int) amount: number of answers to accept before stopping, at
              least 8
        (int) set: maximum number of set bits of an answer, between 1
              and 16
        (Generator) rng = None: numpy random generator, created from
                    seed if not given
        (int) seed = None: seed for the random generator
        (int) population_size = 200: number of chromosomes per generation
        (float) graded_retain_rate = 0.3: percentage of the population
                that survives selection by fitness
        (float) nongraded_retain_rate = 0.2: percentage of the population
                that survives selection at random, to keep diversity
        (int) mutation_threshold = 50: a child is mutated when a random
              integer between 0 and 99 does not exceed this value
        (int or None) max_generations = 10000: number of generations after
                      which the search gives up, where None means no limit
        (int) progress_bars = 0: number of progress bars to show, where 1
              shows the number of accepted answers
        (int or string) memory = 'inf': how many generations the history
                        keeps fitness values for, where 'inf' means
                        unlimited memory
        (int) verbose = 0: verbosity mode
    '''

    def __init__(self, amount, set, rng = None, seed = None,
        population_size = 200, graded_retain_rate = 0.3,
        nongraded_retain_rate = 0.2, mutation_threshold = 50,
        max_generations = 10000, progress_bars = 0, memory = 'inf',
        verbose = 0):

        self.amount = amount
        self.set = set
        self.population_size = population_size
        self.graded_retain_rate = graded_retain_rate
        self.nongraded_retain_rate = nongraded_retain_rate
        self.mutation_threshold = mutation_threshold
        self.max_generations = max_generations
        self.progress_bars = progress_bars
        self.memory = memory
        self.verbose = verbose
        self._check_config()

        if rng is None:
            rng = np.random.default_rng(seed)
        self.rng = rng
        self.history = None

        logging.basicConfig(format = '%(levelname)s: %(message)s')
        self.logger = logging.getLogger(__name__)

        if not verbose:
            self.logger.setLevel(logging.WARNING)
        elif verbose == 1:
            self.logger.setLevel(logging.INFO)
        else:
            self.logger.setLevel(logging.DEBUG)

    def _check_config(self):
        ''' Raise a ConfigurationError if any parameter is invalid. '''

        def is_int(val):
            return isinstance(val, numbers.Integral) and \
                   not isinstance(val, bool)

        if not is_int(self.set) or not 1 <= self.set <= NUM_BITS:
            raise ConfigurationError(f"set must be an integer between 1 and "
                f"{NUM_BITS}, got {self.set!r}")
        if not is_int(self.amount) or self.amount < OUTPUT_SIZE:
            raise ConfigurationError(f"amount must be an integer of at least "
                f"{OUTPUT_SIZE}, got {self.amount!r}")
        if not is_int(self.population_size):
            raise ConfigurationError(f"population_size must be an integer, "
                f"got {self.population_size!r}")

        for name in ('graded_retain_rate', 'nongraded_retain_rate'):
            rate = getattr(self, name)
            if not isinstance(rate, numbers.Real) or not 0 < rate < 1:
                raise ConfigurationError(f"{name} must lie strictly between "
                    f"0 and 1, got {rate!r}")
        if self.graded_retain_rate + self.nongraded_retain_rate >= 1:
            raise ConfigurationError("Retain rates must sum to less than 1")

        # Reproduction needs at least one parent to draw from
        if int(self.population_size * self.graded_retain_rate) < 1:
            raise ConfigurationError(f"A population of size "
                f"{self.population_size} retains no chromosomes by fitness")

        if not is_int(self.mutation_threshold) or \
           not 0 <= self.mutation_threshold <= 99:
            raise ConfigurationError(f"mutation_threshold must be an integer "
                f"between 0 and 99, got {self.mutation_threshold!r}")
        if self.max_generations is not None and \
           (not is_int(self.max_generations) or self.max_generations < 1):
            raise ConfigurationError(f"max_generations must be a positive "
                f"integer or None, got {self.max_generations!r}")
        if self.memory != 'inf' and \
           (not is_int(self.memory) or self.memory < 1):
            raise ConfigurationError(f"memory must be a positive integer or "
                f"'inf', got {self.memory!r}")

    def create_chromosome(self):
        ''' Create a chromosome with uniformly random bits. '''
        return Chromosome.from_bits(self.rng.integers(0, 2, size = NUM_BITS))

    def create_population(self, size):
        ''' Create a population of random chromosomes.

        INPUT
            (int) size: number of chromosomes

        OUTPUT
            (ndarray) array of chromosomes
        '''
        return np.array([self.create_chromosome() for _ in range(size)],
            dtype = object)

    def get_score(self, chromosome):
        ''' Fitness of a chromosome. Chromosomes with more than `set` bits
            set get a negative score, so they rank below every chromosome
            with fewer bits set. '''
        set_count = chromosome.popcount()
        return set_count if set_count <= self.set else self.set - set_count

    def get_scores(self, population):
        return np.array([self.get_score(chromosome)
            for chromosome in population])

    def is_answer(self, chromosome):
        return 0 < chromosome.popcount() <= self.set

    def natural_selection(self, population):
        ''' Select the chromosomes that live to reproduce: the fittest
            ones, followed by a random sample of the rest.

        INPUT
            (ndarray) population: array of chromosomes

        OUTPUT
            (ndarray) array of survivors
        '''
        population = np.asarray(population, dtype = object)

        # Sort by descending score, where ties keep their order
        scores = self.get_scores(population)
        ranked = population[np.argsort(-scores, kind = 'stable')]

        graded_amt = int(population.size * self.graded_retain_rate)
        nongraded_amt = int(population.size * self.nongraded_retain_rate)

        if graded_amt < 1:
            raise ConfigurationError(f"A population of size {population.size} "
                "retains no chromosomes by fitness")

        graded = ranked[:graded_amt]
        rest = ranked[graded_amt:]
        rnd_idx = self.rng.choice(rest.size, size = nongraded_amt,
            replace = False)
        nongraded = rest[rnd_idx]

        return np.append(graded, nongraded)

    def crossover(self, parent1, parent2):
        ''' Child with the first half of parent1 and the second half of
            parent2. '''
        half = NUM_BITS // 2
        return Chromosome.from_bits(parent1.bits[:half] + parent2.bits[half:])

    def mutation(self, chromosome):
        ''' Toggle a random bit of the chromosome. '''
        return chromosome.flip(self.rng.integers(NUM_BITS))

    def new_generation(self, population):
        ''' Replace the population by its survivors and their children.

        INPUT
            (ndarray) population: array of chromosomes

        OUTPUT
            (ndarray) new population of the same size
        '''
        population = np.asarray(population, dtype = object)
        survivors = self.natural_selection(population)

        self.logger.debug(f"Selected {survivors.size} survivors out of "
                          f"{population.size}")

        # Breed until we reach the same size
        children_amt = population.size - survivors.size
        children = np.empty(children_amt, dtype = object)
        mutations = 0
        for i in range(children_amt):
            parent1 = survivors[self.rng.integers(survivors.size)]
            parent2 = survivors[self.rng.integers(survivors.size)]
            child = self.crossover(parent1, parent2)

            if self.rng.integers(100) <= self.mutation_threshold:
                child = self.mutation(child)
                mutations += 1
            children[i] = child

        self.logger.debug(f"Bred {children_amt} children, of which "
                          f"{mutations} were mutated")

        return np.append(children, survivors)

    def generate(self):
        ''' Evolve populations until `amount` answers have been accepted.

        OUTPUT
            (ndarray) the first 8 accepted answers, as uint16 values
        '''

        self.logger.info(f"Searching for {self.amount} values with at most "
                         f"{self.set} bits set...")

        population = self.create_population(self.population_size)
        answers = AnswerBuffer(capacity = OUTPUT_SIZE)
        self.history = History(memory = self.memory)

        if self.progress_bars:
            progress = tqdm(total = self.amount)
            progress.set_description("Accepting answers")

        generation = 0
        try:
            while answers.count < self.amount:
                if self.max_generations is not None and \
                   generation >= self.max_generations:
                    self.logger.warning(f"Giving up after {generation} "
                                        "generations")
                    raise GenerationLimitError(generation, answers.count,
                        self.amount)

                population = self.new_generation(population)
                generation += 1

                accepted = 0
                for chromosome in population:
                    if self.is_answer(chromosome):
                        answers.add(chromosome)
                        accepted += 1

                self.history.add_entry(population,
                    self.get_scores(population), accepted)

                if self.progress_bars:
                    progress.update(min(accepted, self.amount - progress.n))

                self.logger.info(f"Generation {generation}: accepted "
                                 f"{accepted}, {answers.count} in total")
        finally:
            if self.progress_bars:
                progress.close()

        self.logger.info(f"Done after {generation} generations")

        return answers.values()

class History():
    ''' History of the populations evolved by a ChromosomeEngine.

    INPUT
        (int or string) memory = 'inf': how many of the latest generations
                        to keep fitness values and acceptance counts
                        for, where 'inf' means unlimited memory
    '''

    def __init__(self, memory = 'inf'):
        self.memory = memory
        self.generations = 0
        self.fitness_history = []
        self.accepted_history = []
        self.fittest = {'chromosome' : None, 'fitness' : None}

    def add_entry(self, population, fitnesses, accepted):
        ''' Add a generation to the history.

        INPUT
            (ndarray) population: array of chromosomes
            (ndarray) fitnesses: scores of the chromosomes
            (int) accepted: number of answers accepted in this generation
        '''

        fitnesses = np.asarray(fitnesses)
        self.fitness_history.append(fitnesses)
        self.accepted_history.append(accepted)
        self.generations += 1

        # Forget the oldest generations beyond the memory
        if self.memory != 'inf':
            del self.fitness_history[:-self.memory]
            del self.accepted_history[:-self.memory]

        idx = np.argmax(fitnesses)
        if self.fittest['fitness'] is None or \
           fitnesses[idx] > self.fittest['fitness']:
            self.fittest = {
                'chromosome' : population[idx],
                'fitness' : fitnesses[idx]
                }

        return self

    def plot(self, title = 'Average fitness by generation',
        xlabel = 'Generations', ylabel = 'Average fitness',
        save_to = None, show_plot = True, show_max = True):
        ''' Plot the fitness values.

        INPUT
            (string) title: title on the plot
            (string) xlabel: label on the x-axis
            (string) ylabel: label on the y-axis
            (string) save_to: file name to save the plot to
            (bool) show_plot: whether to show plot as a pop-up
            (bool) show_max: show a maximum value line on plot
        '''

        gens = self.generations
        mem = len(self.fitness_history)
        xs = np.arange(gens - mem, gens)
        maxs = np.array([np.max(fit) for fit in self.fitness_history])
        means = np.array([np.mean(fit) for fit in self.fitness_history])
        stds = np.array([np.std(fit) for fit in self.fitness_history])

        plt.style.use("ggplot")
        plt.figure()
        plt.errorbar(xs, means, stds, fmt = 'ok', label = 'mean')
        if show_max:
            plt.plot(xs, maxs, '-', color = 'blue', label = 'max')
        plt.xlim(gens - mem - 1, gens + 1)
        plt.title(title)
        plt.xlabel(xlabel)
        plt.ylabel(ylabel)
        plt.legend(loc = 'lower right')
        if save_to:
            plt.savefig(save_to)
        if show_plot:
            plt.show()
        return self

def main(argv = None):
    parser = ArgumentParser(description = "Generate 16-bit values with few "
        "bits set using a genetic algorithm.")
    parser.add_argument('--amount', type = int, default = OUTPUT_SIZE,
        help = "number of answers to accept before stopping")
    parser.add_argument('--set', type = int, default = 1,
        help = "maximum number of bits set in each value")
    parser.add_argument('--seed', type = int, default = None)
    parser.add_argument('--population-size', type = int, default = 200)
    parser.add_argument('--max-generations', type = int, default = 10000,
        help = "give up after this many generations, 0 for no limit")
    parser.add_argument('--progress', action = 'store_true',
        help = "show a progress bar")
    parser.add_argument('-v', '--verbose', action = 'count', default = 0)
    args = parser.parse_args(argv)

    try:
        engine = ChromosomeEngine(
            amount = args.amount,
            set = args.set,
            seed = args.seed,
            population_size = args.population_size,
            max_generations = args.max_generations or None,
            progress_bars = int(args.progress),
            verbose = args.verbose
            )
    except ConfigurationError as err:
        parser.error(str(err))

    try:
        values = engine.generate()
    except GenerationLimitError as err:
        parser.exit(1, f"{parser.prog}: {err}\n")

    print(' '.join(f'0x{int(value):04X}' for value in values))


if __name__ == '__main__':
    main()
