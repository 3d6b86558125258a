"""Test package for duet-chat."""
from dotenv import find_dotenv, load_dotenv

# pick up MONGODB_CONNECTION and API keys for the optional integration tests
load_dotenv(find_dotenv(usecwd=True))
