"""
日志工具 - 统一输出门面

打包流程的所有日志都经过 OutputFacade：控制台使用 Rich 着色输出，
可选的日志文件写入带日期的纯文本。每条消息可以带一个阶段标记 (LogStage)。
"""

import atexit
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, TextIO, Tuple, Union

from rich.console import Console
from rich.markup import escape


class OutputLevel:
    """输出级别常量"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    SUCCESS = "SUCCESS"
    WARNING = "WARNING"
    ERROR = "ERROR"


class LogStage:
    """日志阶段标记，对应写出 .deb 的各个阶段"""
    INIT = "INIT"
    CONFIG = "CONFIG"
    DATA = "DATA"
    CONTROL = "CONTROL"
    DIGEST = "DIGEST"
    SIGN = "SIGN"
    WRITE = "WRITE"
    DONE = "DONE"


# 级别 -> (排序, 控制台样式)；SUCCESS 与 INFO 同级
_LEVELS: Dict[str, Tuple[int, str]] = {
    OutputLevel.DEBUG: (0, "dim"),
    OutputLevel.INFO: (1, "default"),
    OutputLevel.SUCCESS: (1, "green"),
    OutputLevel.WARNING: (2, "yellow"),
    OutputLevel.ERROR: (3, "red bold"),
}

CONSOLE_TIME_FORMAT = "%H:%M:%S"
FILE_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def plain_line(level: str, message: str, stage: Optional[str] = None,
               when: Optional[datetime] = None) -> str:
    """日志文件中的一行：'[时间] [级别] [阶段] 消息'"""
    when = when or datetime.now()
    parts = [f"[{when.strftime(FILE_TIME_FORMAT)}]", f"[{level}]"]
    if stage:
        parts.append(f"[{stage}]")
    parts.append(message)
    return " ".join(parts)


class OutputFacade:
    """输出门面

    控制台不绑定具体的流：Console 在每次输出时才解析 sys.stdout / sys.stderr，
    因此测试中替换标准流后输出同样能被捕获。
    """

    def __init__(self, level: str = OutputLevel.INFO):
        self._lock = threading.RLock()
        self._stdout = Console(highlight=False, log_time=False, log_path=False)
        self._stderr = Console(stderr=True, highlight=False)
        self._log_file: Optional[TextIO] = None
        self._level = level

    @property
    def level(self) -> str:
        return self._level

    @level.setter
    def level(self, value: str) -> None:
        if value not in _LEVELS:
            raise ValueError(f"未知的日志级别: {value}")
        with self._lock:
            self._level = value

    def enabled(self, level: str) -> bool:
        return _LEVELS[level][0] >= _LEVELS[self._level][0]

    def emit(self, level: str, message: str, stage: Optional[str] = None) -> None:
        """输出一条消息；ERROR 写到 stderr，其余写到 stdout"""
        if not self.enabled(level):
            return

        now = datetime.now()
        markup = f"[dim]{now.strftime(CONSOLE_TIME_FORMAT)}[/dim] [bold]{level}[/bold] "
        if stage:
            markup += f"[cyan]{stage}[/cyan] "
        markup += escape(message)

        with self._lock:
            console = self._stderr if level == OutputLevel.ERROR else self._stdout
            console.print(markup, style=_LEVELS[level][1])
            if self._log_file is not None:
                self._append(plain_line(level, message, stage, now))

    def _append(self, line: str) -> None:
        try:
            self._log_file.write(line + "\n")  # type: ignore[union-attr]
            self._log_file.flush()  # type: ignore[union-attr]
        except OSError:
            pass  # 日志文件写入失败不影响打包

    def open_log_file(self, file_path: Union[str, Path]) -> None:
        """以追加模式打开日志文件，替换之前的日志文件

        Raises:
            OSError: 无法创建或打开日志文件
        """
        log_path = Path(file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handle = open(log_path, 'a', encoding='utf-8')
        with self._lock:
            self.close()
            self._log_file = handle

    def close(self) -> None:
        with self._lock:
            if self._log_file is not None:
                self._log_file.close()
                self._log_file = None


# 全局输出门面实例
_facade: Optional[OutputFacade] = None
_facade_lock = threading.Lock()


def get_output_facade() -> OutputFacade:
    """获取全局输出门面实例"""
    global _facade
    with _facade_lock:
        if _facade is None:
            _facade = OutputFacade()
        return _facade


def debug(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.DEBUG, message, stage)


def info(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.INFO, message, stage)


def success(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.SUCCESS, message, stage)


def warning(message: str, stage: Optional[str] = None) -> None:
    get_output_facade().emit(OutputLevel.WARNING, message, stage)


def error(message: str, stage: Optional[str] = None) -> None:
    """错误信息（输出到 stderr）"""
    get_output_facade().emit(OutputLevel.ERROR, message, stage)


def set_log_level(level: str) -> None:
    """设置全局日志级别"""
    get_output_facade().level = level


def set_log_file(file_path: Union[str, Path]) -> None:
    """设置全局日志文件"""
    get_output_facade().open_log_file(file_path)


def configure_logging(level: str = OutputLevel.INFO, log_file: Optional[Union[str, Path]] = None) -> None:
    """一次性设置级别与日志文件"""
    set_log_level(level)
    if log_file:
        set_log_file(log_file)


def close_logger() -> None:
    """关闭日志文件并丢弃全局实例"""
    global _facade
    with _facade_lock:
        if _facade is not None:
            _facade.close()
            _facade = None


atexit.register(close_logger)
