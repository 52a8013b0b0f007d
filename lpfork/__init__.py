#
from typing import NewType

# Type for an address
Address = NewType("Address", str)

from lpfork.utils import *
from lpfork.errors import (
    ConfigurationError,
    ScenarioError,
    CollaboratorRejected,
    InvariantViolation,
)
from lpfork.config import (
    ScenarioConfig,
    TokenSpec,
    default_configuration,
    load_configuration,
    fork_url,
    RPC_URL_ENV_VARS,
)
from lpfork.chain import Authority, ForkedChain
from lpfork.scenario import Phase, Scenario, ScenarioOutcome, run_scenario
