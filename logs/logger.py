from __future__ import annotations
import gzip
import logging
import os, sys
import shutil

from logging.handlers import RotatingFileHandler
from collections import deque

from neuroevo.utils.config_loader import get_config_section

USE_ANSI = sys.stdout.isatty() and os.environ.get("NO_COLOR") is None

if os.name == 'nt':
    os.system("")

COLOR_CODES = {
    'RESET': "\033[0m",
    'BLUE': "\033[94m",
    'GREEN': "\033[92m",
    'YELLOW': "\033[93m",
    'RED': "\033[91m",
    'magenta': '\033[35m',
    'cyan': '\033[36m',
    'white': '\033[37m',
}
STYLES = {
    'reset': '\033[0m',
    'bold': '\033[1m',
    'dim': '\033[2m',
    'italic': '\033[3m',
    'bg_blue': '\033[44m',
    'red': '\033[91m',
    'green': '\033[92m',
    'yellow': '\033[93m',
    'blue': '\033[94m',
    'Orange1': '\033[38;5;214m',
}

# Global flag to track initialization
_logger_initialized = False

class ColorFormatter(logging.Formatter):

    def format(self, record):
        if not USE_ANSI:
            return super().format(record)
        message = super().format(record)

        if "initializ" in record.getMessage().lower():
            color = COLOR_CODES['BLUE']
        elif record.levelno >= logging.CRITICAL:
            color = COLOR_CODES['RED']
        elif record.levelno >= logging.ERROR:
            color = STYLES['Orange1']
        elif record.levelno >= logging.WARNING:
            color = COLOR_CODES['YELLOW']
        else:
            color = COLOR_CODES['RESET']

        return f"{color}{message}{COLOR_CODES['RESET']}"

class RotatingHandler(RotatingFileHandler):
    """Rotating file handler that gzips rolled-over files."""
    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._compress_queue = deque(maxlen=5)

    def doRollover(self):
        super().doRollover()
        for i in range(1, self.backupCount + 1):
            rolled = self.rotation_filename(f"{self.baseFilename}.{i}")
            if os.path.exists(rolled):
                self._compress_queue.append(rolled)
        self._manage_compression()

    def _manage_compression(self):
        while self._compress_queue:
            path = self._compress_queue.popleft()
            if not os.path.exists(path):
                continue
            gz_path = path + '.gz'
            try:
                with open(path, 'rb') as f_in:
                    with gzip.open(gz_path, 'wb') as f_out:
                        shutil.copyfileobj(f_in, f_out)
                os.remove(path)
            except OSError as e:
                logging.getLogger("RotatingHandler").error(f"Compression error for {path}: {e}")

def get_logger(name: str) -> logging.Logger:
    global _logger_initialized
    logger = logging.getLogger(name)

    if not _logger_initialized:
        _logger_initialized = True
        log_config = get_config_section('logging')
        fmt = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO))

        # Remove any existing handlers
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        if log_config.get('file_logging', True):
            log_dir = log_config.get('log_dir', 'logs')
            os.makedirs(log_dir, exist_ok=True)
            file_handler = RotatingHandler(
                os.path.join(log_dir, log_config.get('log_file', 'neuroevo.log')),
                maxBytes=log_config.get('max_bytes', 1000000),
                backupCount=log_config.get('backup_count', 5),
                delay=True  # Defer file opening until first log
            )
            file_handler.setFormatter(logging.Formatter(fmt))
            file_handler.setLevel(logging.DEBUG)
            root_logger.addHandler(file_handler)

        # Console handler with colors
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColorFormatter(fmt))
        root_logger.addHandler(console_handler)

    return logger

class PrettyPrinter:
    @classmethod
    def _style(cls, text, *styles):
        if not USE_ANSI:
            return text
        codes = []
        for style in styles:
            if style in STYLES:
                codes.append(STYLES[style])
            elif style in COLOR_CODES:
                codes.append(COLOR_CODES[style])
        return f"{''.join(codes)}{text}{STYLES['reset']}"

    @classmethod
    def table(cls, headers, rows, title=None):
        col_width = [max(len(str(item)) for item in col) for col in zip(headers, *rows)]

        if title:
            total_width = sum(col_width) + 3*(len(headers)-1)
            print(cls._style(f"╒{'═'*(total_width)}╕", 'bold', 'blue'))
            print(cls._style(f"│ {title.center(total_width)} │", 'bold', 'blue'))
            print(cls._style(f"╞{'╪'.join('═'*w for w in col_width)}╡", 'bold', 'blue'))

        header = cls._style("│ ", 'blue') + cls._style(" │ ", 'blue').join(
            cls._style(str(h).ljust(w), 'bold', 'white', 'bg_blue')
            for h, w in zip(headers, col_width)
        ) + cls._style(" │", 'blue')
        print(header)
        print(cls._style(f"├{'┼'.join('─'*w for w in col_width)}┤", 'blue'))

        for row in rows:
            cells = [cls._style(str(item).ljust(w), 'cyan') for item, w in zip(row, col_width)]
            print(cls._style("│ ", 'blue') + cls._style(" │ ", 'blue').join(cells) + cls._style(" │", 'blue'))

        print(cls._style(f"╘{'╧'.join('═'*w for w in col_width)}╛", 'bold', 'blue'))

    @classmethod
    def section_header(cls, text, width=32):
        rule = "═" * width
        print("\n" + cls._style(f"╒{rule}", 'bold', 'magenta'))
        print(cls._style(f" {text.upper()}", 'bold', 'magenta'))
        print(cls._style(f"╘{rule}", 'bold', 'magenta'))

    @classmethod
    def status(cls, label, message, status="info"):
        status_colors = {
            'info': ('blue', 'ℹ'),
            'success': ('green', '✔'),
            'warning': ('yellow', '⚠'),
            'error': ('red', '✖')
        }
        color, icon = status_colors.get(status, ('white', '○'))
        label_text = cls._style(f"[{label}]", 'bold', color)
        print(f"{cls._style(icon, color)} {label_text} {message}")
