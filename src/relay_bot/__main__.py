"""Allow ``python -m relay_bot``."""
from relay_bot.core.daemon import cli

cli()
