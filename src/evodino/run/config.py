"""
Configuration Module

Configuration objects for the three training strategies. Each configuration
can be created with its defaults, adjusted through keyword arguments, or
read from an INI file in which the options live in a strategy-specific
section ([GA], [NEAT] or [PPO]).

Example INI file:

    [PPO]
    n_agents      = 40
    learning_rate = 0.0003
    clip_epsilon  = 0.2
    input_size    = 7

Classes:
    Config:     Base class (INI parsing, keyword overrides, validation helpers)
    GAConfig:   Options of the fixed-topology genetic algorithm
    NEATConfig: Options of the NEAT algorithm
    PPOConfig:  Options of the PPO trainer
"""

import configparser
import os

from evodino.errors import ConfigError

# Sentinel for missing default values
_NO_DEFAULT = object()

class Config:
    """
    Base class for all configurations.

    Subclasses declare their options in '_set_options()' by calling '_get()',
    which returns the value found in the INI file (if one was given and it
    contains the option) or the supplied default otherwise.

    Public Methods:
        validate(): Check that all values are in range, raise ConfigError otherwise

    Class Methods:
        from_file(config_file, **overrides): Create a configuration from an INI file
    """

    # Name of the INI section holding the options of this configuration
    SECTION: str = ''

    def __init__(self, config_file: str | None = None, **overrides):
        """
        Initialize a configuration.

        Parameters:
            config_file: Path to an INI file. If None, the defaults are used.
            overrides:   Option values taking precedence over file and defaults

        Raises:
            FileNotFoundError: If 'config_file' does not exist
            ConfigError:       If an override names an unknown option
        """
        self._parser = None
        if config_file is not None:
            if not os.path.exists(config_file):
                raise FileNotFoundError(f"Configuration file '{config_file}' not found")
            self._parser = configparser.ConfigParser()
            self._parser.read(config_file)

        self._set_options()
        self._parser = None

        for name, value in overrides.items():
            if name.startswith('_') or name not in vars(self):
                raise ConfigError(f"Unknown {self.SECTION} option '{name}'")
            setattr(self, name, value)

    @classmethod
    def from_file(cls, config_file: str, **overrides) -> 'Config':
        return cls(config_file, **overrides)

    def _set_options(self) -> None:
        raise NotImplementedError

    def _get(self, key: str, value_type: type, default=_NO_DEFAULT):
        """
        Read one option from the INI section, falling back to 'default'.

        Lists are written as comma-separated values ("64, 32").
        The string "none" (any case) is read as None.
        """
        parser = self._parser
        if parser is None or not parser.has_option(self.SECTION, key):
            if default is _NO_DEFAULT:
                raise ConfigError(f"Missing {self.SECTION} option '{key}'")
            return list(default) if isinstance(default, list) else default

        raw_value = parser.get(self.SECTION, key)
        if raw_value.strip().lower() == 'none':
            return None
        try:
            if value_type == int:
                return parser.getint(self.SECTION, key)
            elif value_type == float:
                return parser.getfloat(self.SECTION, key)
            elif value_type == bool:
                return parser.getboolean(self.SECTION, key)
            elif value_type == list:
                return [int(v) for v in raw_value.split(',') if v.strip()]
            return raw_value
        except ValueError as e:
            raise ConfigError(f"Bad value for {self.SECTION} option '{key}': {raw_value!r}") from e

    def validate(self) -> None:
        raise NotImplementedError

    # Validation helpers

    def _check_int(self, name: str, minimum: int) -> None:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
            raise ConfigError(f"{self.SECTION} option '{name}' must be an integer >= {minimum}, got {value!r}")

    def _check_range(self, name: str, low: float, high: float) -> None:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not (low <= value <= high):
            raise ConfigError(f"{self.SECTION} option '{name}' must be in [{low}, {high}], got {value!r}")

    def _check_positive(self, name: str) -> None:
        value = getattr(self, name)
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            raise ConfigError(f"{self.SECTION} option '{name}' must be positive, got {value!r}")

    def _check_max_generations(self) -> None:
        if self.max_generations is not None:
            self._check_int('max_generations', 1)

    def __repr__(self):
        options = ', '.join(f"{k}={v!r}" for k, v in vars(self).items() if not k.startswith('_'))
        return f"{type(self).__name__}({options})"


class GAConfig(Config):
    """
    Options of the genetic algorithm over fixed-topology networks.
    """

    SECTION = 'GA'

    def _set_options(self) -> None:

        # The number of networks in each generation.
        self.population_size = self._get('population_size', int, 150)

        # Probability that any single weight or bias is perturbed by mutation.
        self.mutation_rate = self._get('mutation_rate', float, 0.15)

        # Maximum magnitude of a mutation perturbation.
        self.mutation_strength = self._get('mutation_strength', float, 0.1)

        # Probability that a child is bred by crossover rather than cloned.
        self.crossover_rate = self._get('crossover_rate', float, 0.7)

        # Number of top networks copied unchanged into the next generation.
        self.elitism_count = self._get('elitism_count', int, 10)

        # Network topology: input size, hidden layer sizes, output size.
        self.input_size   = self._get('input_size'  , int , 7)
        self.hidden_sizes = self._get('hidden_sizes', list, [5])
        self.output_size  = self._get('output_size' , int , 1)

        # Stop training after this many generations ("none" = run until stopped).
        self.max_generations = self._get('max_generations', int, None)

    def validate(self) -> None:
        self._check_int('population_size', 2)
        self._check_range('mutation_rate', 0.0, 1.0)
        self._check_range('crossover_rate', 0.0, 1.0)
        self._check_positive('mutation_strength')
        self._check_int('elitism_count', 0)
        if self.elitism_count > self.population_size:
            raise ConfigError(f"GA option 'elitism_count' ({self.elitism_count}) "
                              f"exceeds 'population_size' ({self.population_size})")
        self._check_int('input_size', 1)
        self._check_int('output_size', 1)
        if not all(isinstance(h, int) and h >= 1 for h in self.hidden_sizes):
            raise ConfigError(f"GA option 'hidden_sizes' must hold positive integers, got {self.hidden_sizes!r}")
        self._check_max_generations()


class NEATConfig(Config):
    """
    Options of the NEAT algorithm.
    """

    SECTION = 'NEAT'

    def _set_options(self) -> None:

        # [POPULATION]

        # The number of genomes in each generation.
        self.population_size = self._get('population_size', int, 150)

        # The number of input and output nodes of every genome.
        self.input_size  = self._get('input_size' , int, 7)
        self.output_size = self._get('output_size', int, 2)

        # Maximum magnitude of the weight perturbation applied to
        # the genomes of the initial population.
        self.initial_weight_strength = self._get('initial_weight_strength', float, 0.5)

        # [MUTATION]

        # Per-connection probability of a weight mutation, and the
        # maximum magnitude of a weight perturbation.
        self.weight_mutation_rate     = self._get('weight_mutation_rate'    , float, 0.8)
        self.weight_mutation_strength = self._get('weight_mutation_strength', float, 0.2)

        # Per-offspring probabilities of the structural mutations.
        self.add_node_rate       = self._get('add_node_rate'      , float, 0.03)
        self.add_connection_rate = self._get('add_connection_rate', float, 0.05)

        # [SPECIATION]

        # Genomes closer than this threshold belong to the same species.
        self.compatibility_threshold = self._get('compatibility_threshold', float, 3.0)

        # Coefficients of the excess, disjoint and weight terms of the distance.
        self.c1 = self._get('c1', float, 1.0)
        self.c2 = self._get('c2', float, 1.0)
        self.c3 = self._get('c3', float, 0.4)

        # [REPRODUCTION]

        # The fraction of each species allowed to reproduce.
        self.survival_rate = self._get('survival_rate', float, 0.2)

        # Probability that an offspring is cloned instead of bred by crossover.
        self.clone_probability = self._get('clone_probability', float, 0.25)

        # Species that have not improved for this many generations are removed.
        self.max_staleness = self._get('max_staleness', int, 20)

        # Stop training after this many generations ("none" = run until stopped).
        self.max_generations = self._get('max_generations', int, None)

    def validate(self) -> None:
        self._check_int('population_size', 1)
        self._check_int('input_size', 1)
        self._check_int('output_size', 1)
        self._check_positive('initial_weight_strength')
        self._check_range('weight_mutation_rate', 0.0, 1.0)
        self._check_positive('weight_mutation_strength')
        self._check_range('add_node_rate', 0.0, 1.0)
        self._check_range('add_connection_rate', 0.0, 1.0)
        self._check_positive('compatibility_threshold')
        for name in ('c1', 'c2', 'c3'):
            self._check_range(name, 0.0, float('inf'))
        self._check_range('survival_rate', 0.0, 1.0)
        self._check_range('clone_probability', 0.0, 1.0)
        self._check_int('max_staleness', 1)
        self._check_max_generations()


class PPOConfig(Config):
    """
    Options of the PPO trainer.
    """

    SECTION = 'PPO'

    def _set_options(self) -> None:

        # Number of agents collecting trajectories in each episode.
        self.n_agents = self._get('n_agents', int, 40)

        # Adam step size.
        self.learning_rate = self._get('learning_rate', float, 3e-4)

        # The probability ratio is clipped to [1 - clip_epsilon, 1 + clip_epsilon].
        self.clip_epsilon = self._get('clip_epsilon', float, 0.2)

        # Size of the state vector supplied by the environment.
        self.input_size = self._get('input_size', int, 7)

        # Discount factor and GAE smoothing factor.
        self.gamma      = self._get('gamma'     , float, 0.99)
        self.gae_lambda = self._get('gae_lambda', float, 0.95)

        # Optimization passes over the pooled transitions, and minibatch size.
        self.epochs         = self._get('epochs'        , int, 4)
        self.minibatch_size = self._get('minibatch_size', int, 64)

        # Loss coefficients.
        self.entropy_coeff = self._get('entropy_coeff', float, 0.04)
        self.value_coeff   = self._get('value_coeff'  , float, 0.5)

        # Global norm above which gradients are rescaled.
        self.max_grad_norm = self._get('max_grad_norm', float, 0.5)

        # Reward assigned to the last recorded step of every agent.
        self.terminal_penalty = self._get('terminal_penalty', float, -5.0)

        # Stop training after this many episodes ("none" = run until stopped).
        self.max_generations = self._get('max_generations', int, None)

    def validate(self) -> None:
        self._check_int('n_agents', 1)
        self._check_positive('learning_rate')
        self._check_range('clip_epsilon', 0.0, 1.0)
        self._check_int('input_size', 1)
        self._check_range('gamma', 0.0, 1.0)
        self._check_range('gae_lambda', 0.0, 1.0)
        self._check_int('epochs', 1)
        self._check_int('minibatch_size', 1)
        self._check_range('entropy_coeff', 0.0, float('inf'))
        self._check_range('value_coeff', 0.0, float('inf'))
        self._check_positive('max_grad_norm')
        self._check_max_generations()
