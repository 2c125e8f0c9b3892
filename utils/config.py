"""配置管理模块。

提供基于 OmegaConf + YAML 的统一配置加载、验证和管理功能。
"""

import os
from collections.abc import Hashable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from dotenv import load_dotenv
from omegaconf import DictConfig, OmegaConf


# 注册环境变量解析器（支持 ${env:VAR} 语法）
OmegaConf.register_new_resolver("env", lambda var: os.getenv(var, ""))

STRATA_MODES = ("interpret", "rewrite")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


# ============================================================
# 配置数据类定义
# ============================================================


@dataclass
class ProjectConfig:
    """项目基础配置。"""

    name: str
    version: str
    log_dir: Path


@dataclass
class ExecutionConfig:
    """执行沙箱配置。"""

    timeout: float
    strata_mode: str
    python_path: Optional[str]
    max_call_depth: int
    output_limit: int


@dataclass
class WorkspaceConfig:
    """工作区初始内容（种子树）。"""

    seed: List[Any] = field(default_factory=list)


@dataclass
class LoggingConfig:
    """日志配置。"""

    level: str
    console_output: bool
    file_output: bool


@dataclass
class Config(Hashable):
    """顶层配置类。"""

    project: ProjectConfig
    execution: ExecutionConfig
    workspace: WorkspaceConfig
    logging: LoggingConfig

    def __hash__(self) -> int:
        return hash((self.project.name, self.project.version))


# ============================================================
# 配置加载与验证函数
# ============================================================


def load_config(
    config_path: Path | None = None, use_cli: bool = True, env_file: Path | None = None
) -> Config:
    """加载 YAML 配置并合并 CLI 参数和环境变量。

    配置优先级（从高到低）:
        1. CLI 参数（key=value）
        2. 环境变量（.env 文件或系统环境变量）
        3. YAML 配置文件

    Args:
        config_path: 配置文件路径，默认为 config/default.yaml
        use_cli: 是否合并 CLI 参数（通过 OmegaConf.from_cli()）
        env_file: .env 文件路径，默认为项目根目录的 .env 文件

    Returns:
        验证后的 Config 对象

    Raises:
        FileNotFoundError: 配置文件不存在
        ValueError: 配置验证失败

    示例:
        >>> cfg = load_config()
        >>> cfg = load_config(Path("custom.yaml"), use_cli=False)
    """
    from utils.logger_system import log_msg

    # 步骤 1: 加载 .env 文件到环境变量
    if env_file is None:
        env_file = Path(__file__).parent.parent / ".env"

    if env_file.exists():
        load_dotenv(env_file, override=False)
        log_msg("INFO", f"加载环境变量文件: {env_file}")

    # 步骤 2: 确定配置文件路径
    if config_path is None:
        config_path = Path(__file__).parent.parent / "config" / "default.yaml"

    if not config_path.exists():
        error_msg = f"配置文件不存在: {config_path}"
        log_msg("ERROR", error_msg)
        raise FileNotFoundError(error_msg)

    # 步骤 3: 加载 YAML 配置（会自动解析 ${env:VAR} 插值）
    cfg = OmegaConf.load(config_path)

    # 步骤 4: 合并 CLI 参数（优先级最高）
    if use_cli:
        cli_cfg = OmegaConf.from_cli()
        if cli_cfg:
            log_msg("INFO", f"合并 CLI 参数: {OmegaConf.to_yaml(cli_cfg)}")
            cfg = OmegaConf.merge(cfg, cli_cfg)

    # 步骤 5: 验证配置
    return validate_config(cfg)


def validate_config(cfg: DictConfig) -> Config:
    """验证配置完整性和合法性。

    Args:
        cfg: OmegaConf DictConfig 对象

    Returns:
        类型化的 Config 对象

    Raises:
        ValueError: 配置验证失败

    验证规则:
        1. execution.timeout、max_call_depth、output_limit 必须为正数
        2. execution.strata_mode 必须为 interpret 或 rewrite
        3. logging.level 必须为合法级别
        4. python_path 为空字符串时视为未设置
        5. log_dir 解析为绝对路径
    """
    from utils.logger_system import ensure, log_msg

    # ---- 类型化转换 ----
    cfg_schema = OmegaConf.structured(
        Config(
            project=ProjectConfig(name="", version="", log_dir=Path("logs")),
            execution=ExecutionConfig(
                timeout=10.0,
                strata_mode="interpret",
                python_path=None,
                max_call_depth=100,
                output_limit=100_000,
            ),
            workspace=WorkspaceConfig(),
            logging=LoggingConfig(level="INFO", console_output=False, file_output=True),
        )
    )

    try:
        cfg_merged = OmegaConf.merge(cfg_schema, cfg)
    except Exception as e:
        error_msg = f"配置类型校验失败: {e}"
        log_msg("ERROR", error_msg)
        raise ValueError(error_msg) from e

    cfg_dict = OmegaConf.to_container(cfg_merged, resolve=True)

    execution = cfg_dict["execution"]
    if not execution.get("python_path"):
        execution["python_path"] = None

    # ---- 取值检查 ----
    try:
        ensure(execution["timeout"] > 0, "`execution.timeout` 必须为正数")
        ensure(execution["max_call_depth"] > 0, "`execution.max_call_depth` 必须为正数")
        ensure(execution["output_limit"] > 0, "`execution.output_limit` 必须为正数")
        ensure(
            execution["strata_mode"] in STRATA_MODES,
            f"`execution.strata_mode` 必须为 {STRATA_MODES} 之一",
        )
        ensure(
            str(cfg_dict["logging"]["level"]).upper() in LOG_LEVELS,
            f"`logging.level` 必须为 {LOG_LEVELS} 之一",
        )
    except AssertionError as e:
        raise ValueError(str(e)) from e

    project = cfg_dict["project"]
    project["log_dir"] = Path(project["log_dir"]).resolve()

    return Config(
        project=ProjectConfig(**project),
        execution=ExecutionConfig(**execution),
        workspace=WorkspaceConfig(seed=cfg_dict["workspace"]["seed"] or []),
        logging=LoggingConfig(**cfg_dict["logging"]),
    )


def print_config(cfg: Config) -> None:
    """美观打印配置（用于调试）。

    实现细节:
        - 使用 rich 库高亮显示 YAML 格式
        - 种子树只打印顶层节点名
    """
    from rich import print as rprint
    from rich.syntax import Syntax

    cfg_dict = {
        "project": {
            "name": cfg.project.name,
            "version": cfg.project.version,
            "log_dir": str(cfg.project.log_dir),
        },
        "execution": {
            "timeout": cfg.execution.timeout,
            "strata_mode": cfg.execution.strata_mode,
            "python_path": cfg.execution.python_path,
            "max_call_depth": cfg.execution.max_call_depth,
            "output_limit": cfg.execution.output_limit,
        },
        "workspace": {
            "seed": [node.get("name") for node in cfg.workspace.seed],
        },
        "logging": {
            "level": cfg.logging.level,
            "console_output": cfg.logging.console_output,
            "file_output": cfg.logging.file_output,
        },
    }

    yaml_str = OmegaConf.to_yaml(OmegaConf.create(cfg_dict))
    syntax = Syntax(yaml_str, "yaml", theme="paraiso-dark", line_numbers=True)
    rprint(syntax)
