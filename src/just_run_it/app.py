"""just-run-it 命令行入口。

运行一个程序，带颜色回显其输出，并以反映程序结果的状态码退出:
    0           程序以 0 退出
    N           程序以 N 退出
    128 + S     程序被信号 S 终止
    127 / 126   程序不存在 / 不可执行
    1           其他启动失败

用法:
    just-run-it [-q] [--no-color] [-e KEY=VALUE]... [--] COMMAND [ARG...]
"""

from __future__ import annotations

import argparse
import asyncio
import codecs
import logging
import os
import sys

from . import __version__
from .config import Settings, get_settings
from .errors import LaunchError, NonZeroExitError, RunError, SignalTerminationError
from .runtime import ProcessRunner, RunSpec

__all__ = ["build_parser", "exit_code_for", "main"]

logger = logging.getLogger(__name__)

EXIT_NOT_FOUND = 127
EXIT_NOT_EXECUTABLE = 126
EXIT_LAUNCH_FAILED = 1
EXIT_INTERRUPTED = 130  # 128 + SIGINT(2)


def _env_pair(value: str) -> tuple[str, str]:
    """解析 KEY=VALUE 形式的命令行参数。"""
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def _encoding(value: str) -> str:
    """校验编码名称。"""
    try:
        codecs.lookup(value)
    except LookupError:
        raise argparse.ArgumentTypeError(f"unknown encoding: {value!r}") from None
    return value


def _silence_broken_stdout() -> None:
    """stdout 的读端已关闭时，将 stdout 重定向到 devnull。

    避免解释器退出时刷新缓冲区再次触发 BrokenPipeError。
    """
    try:
        sys.stdout.flush()
    except BrokenPipeError:
        devnull = os.open(os.devnull, os.O_WRONLY)
        os.dup2(devnull, sys.stdout.fileno())
        os.close(devnull)


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """构建参数解析器，默认值取自 ``settings``。"""
    parser = argparse.ArgumentParser(
        prog="just-run-it",
        description="Run a program, echoing its output with colors.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=settings.quiet,
        help="do not print the command or its output",
    )
    parser.add_argument(
        "--no-color",
        dest="color",
        action="store_false",
        default=settings.color,
        help="do not colorize output",
    )
    parser.add_argument(
        "--no-propagate-signals",
        dest="propagate_signals",
        action="store_false",
        default=settings.propagate_signals,
        help="do not re-deliver SIGINT/SIGTERM that killed the program",
    )
    parser.add_argument(
        "-e",
        "--env",
        dest="env",
        action="append",
        type=_env_pair,
        default=[],
        metavar="KEY=VALUE",
        help="set an environment variable for the program (repeatable)",
    )
    parser.add_argument(
        "--encoding",
        type=_encoding,
        default=settings.encoding,
        help="encoding of the program's output (default: %(default)s)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="print the command without running it",
    )
    parser.add_argument("command", nargs=argparse.REMAINDER, help="program and arguments")
    return parser


def exit_code_for(error: RunError) -> int:
    """将运行失败映射为本进程的退出码。"""
    if isinstance(error, NonZeroExitError):
        return error.code
    if isinstance(error, SignalTerminationError):
        return 128 + error.signum
    if isinstance(error, LaunchError):
        if isinstance(error.cause, FileNotFoundError):
            return EXIT_NOT_FOUND
        if isinstance(error.cause, PermissionError):
            return EXIT_NOT_EXECUTABLE
    return EXIT_LAUNCH_FAILED


def configure_logging(settings: Settings) -> None:
    """配置命令行的日志处理器。"""
    log_handlers: list[logging.Handler] = []

    if settings.log_debug and settings.log_file:
        # LOG_DEBUG 模式：输出到临时文件
        file_handler = logging.FileHandler(settings.log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(file_handler)
        log_level = logging.DEBUG
    else:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        log_handlers.append(stderr_handler)
        log_level = logging.INFO

    # root logger 设为 WARNING，减少第三方库噪音
    logging.basicConfig(
        level=logging.WARNING,
        handlers=log_handlers,
    )
    logging.getLogger("just_run_it").setLevel(log_level)


async def run_command(args: argparse.Namespace) -> int:
    """运行解析后的命令并返回退出码。"""
    spec = RunSpec(
        argv=args.command,
        env=dict(args.env),
        capture=False,
        quiet=args.quiet,
        encoding=args.encoding,
        propagate_signals=args.propagate_signals,
        color=args.color,
        dry_run=args.dry_run,
    )
    try:
        await ProcessRunner().run(spec)
    except RunError as e:
        logger.error(f"{e.shell_command}: {e.message}")
        return exit_code_for(e)
    return 0


def main(argv: list[str] | None = None) -> None:
    """主入口。"""
    settings = get_settings()
    parser = build_parser(settings)
    args = parser.parse_args(argv)

    if args.command and args.command[0] == "--":
        args.command = args.command[1:]
    if not args.command:
        parser.error("missing COMMAND")

    configure_logging(settings)
    logger.debug(f"Loaded {settings!r}")

    try:
        code = asyncio.run(run_command(args))
    except KeyboardInterrupt:
        code = EXIT_INTERRUPTED
    _silence_broken_stdout()
    sys.exit(code)


if __name__ == "__main__":
    main()
