from .compact_index_api import CompactIndexApiImpl  # noqa: F401
from .specs_api import SpecsApiImpl  # noqa: F401
from .health_api import HealthApiImpl  # noqa: F401
