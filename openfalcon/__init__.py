"""
OpenFalcon dashboard datasource

Translates dashboard panel queries into OpenFalcon render requests and
normalizes the backend's responses into canonical time series.
"""

from .config import DatasourceConfig, load_config, load_config_from
from .datasource import OpenFalconDatasource
from .http_client import FalconHttpClient
from .templating import TemplateVariables

__all__ = [
    "DatasourceConfig",
    "load_config",
    "load_config_from",
    "OpenFalconDatasource",
    "FalconHttpClient",
    "TemplateVariables",
]

__version__ = "0.3.0"
