from .step_10_preflight import PreflightStep
from .step_20_inspect_host import InspectHostStep
from .step_30_prepare_proxy_dir import PrepareProxyDirStep
from .step_40_write_config import WriteConfigStep
from .step_50_install_dependencies import InstallDependenciesStep
from .step_60_verify_tools import VerifyToolsStep

__all__ = [
    "PreflightStep",
    "InspectHostStep",
    "PrepareProxyDirStep",
    "WriteConfigStep",
    "InstallDependenciesStep",
    "VerifyToolsStep",
]
