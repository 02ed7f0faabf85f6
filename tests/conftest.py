import os
import warnings

# Ignore warnings from fliplive.shared
warnings.filterwarnings("ignore", category=DeprecationWarning, module="fliplive.shared.*")

# Set test environment variables before any fliplive module reads the config
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ.setdefault("REDIS_URL_DEFAULT", "redis://localhost:6379/0")

# Import database fixtures so they are available to all tests
from tests.fixtures.mongo_fixtures import *  # noqa: E402, F403
from tests.fixtures.domain_fixtures import *  # noqa: E402, F403
