"""hmmlab - hidden Markov models with discrete, continuous and mixture emissions."""

__version__ = "0.1.0"

# Configuration
from .config import (
    LEARN_MAX_ITERATION_DEFAULT,
    LEARN_TERMINATED_RATIO_MODE_DEFAULT,
    LEARN_TERMINATED_THRESHOLD_DEFAULT,
    LearnConfig,
)

# Decoding
from .decoding import longest_path, longest_path_advanced, path_weight, state_string, viterbi, weight

# Emission distributions
from .distributions import (
    Distribution,
    ExponentialDistribution,
    MixtureDistribution,
    NormalDistribution,
    ProbabilityTable,
)

# Events
from .events import (
    CallbackListener,
    DoEvent,
    DoType,
    EventChannel,
    HMMListener,
    InfoEvent,
    LoggingListener,
)

# Factory
from .factory import (
    HMMBuilder,
    create_discrete_hmm,
    create_exponential_hmm,
    create_normal_hmm,
    create_normal_mixture_hmm,
    create_random_discrete_hmm,
    weather_hmm,
)

# Inference
from .inference import (
    RawRecurrence,
    Recurrence,
    RecurrenceTables,
    ScaledRecurrence,
    alpha_all,
    alpha_beta_all,
    backward,
    beta_all,
    c,
    c_all,
    c_for_post,
    c_for_pre,
    cond_prob,
    describe_quantities,
    forward,
    gamma,
    gamma_all,
    gamma_all_by_comp,
    gamma_all_by_state,
    joint_prob,
    prob_obs,
    prob_state,
)

# Learning
from .learning import BaumWelch, EMResult, SkippedUpdate

# Logging
from .logging import configure_logging, get_logger, set_log_level

# Model
from .model import HiddenMarkovModel

# Observations
from .observations import (
    MonoObs,
    Obs,
    VectorObs,
    as_obs_sequence,
    create_obs_list,
    obs_to_string,
    random_integer_obs,
    random_real_obs,
)

__all__ = [
    "__version__",
    # Configuration
    "LearnConfig",
    "LEARN_MAX_ITERATION_DEFAULT",
    "LEARN_TERMINATED_THRESHOLD_DEFAULT",
    "LEARN_TERMINATED_RATIO_MODE_DEFAULT",
    # Observations
    "Obs",
    "MonoObs",
    "VectorObs",
    "create_obs_list",
    "random_integer_obs",
    "random_real_obs",
    "as_obs_sequence",
    "obs_to_string",
    # Distributions
    "Distribution",
    "ProbabilityTable",
    "NormalDistribution",
    "ExponentialDistribution",
    "MixtureDistribution",
    # Model
    "HiddenMarkovModel",
    # Inference
    "forward",
    "backward",
    "alpha_all",
    "beta_all",
    "alpha_beta_all",
    "gamma",
    "gamma_all",
    "gamma_all_by_state",
    "gamma_all_by_comp",
    "c",
    "c_for_pre",
    "c_for_post",
    "c_all",
    "prob_obs",
    "prob_state",
    "cond_prob",
    "joint_prob",
    "Recurrence",
    "RawRecurrence",
    "ScaledRecurrence",
    "RecurrenceTables",
    "describe_quantities",
    # Decoding
    "viterbi",
    "weight",
    "path_weight",
    "longest_path",
    "longest_path_advanced",
    "state_string",
    # Learning
    "BaumWelch",
    "EMResult",
    "SkippedUpdate",
    # Events
    "DoType",
    "InfoEvent",
    "DoEvent",
    "HMMListener",
    "CallbackListener",
    "LoggingListener",
    "EventChannel",
    # Factory
    "create_discrete_hmm",
    "create_random_discrete_hmm",
    "create_normal_hmm",
    "create_exponential_hmm",
    "create_normal_mixture_hmm",
    "HMMBuilder",
    "weather_hmm",
    # Logging
    "get_logger",
    "set_log_level",
    "configure_logging",
]
