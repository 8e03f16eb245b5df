import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_file_logging(path: str = 'f5_as3_translator.log', level: int = logging.INFO,
                           mode: str = 'w') -> logging.Logger:
    """
    Send the package's log records to a file.

    Only the first call attaches a handler, later calls return the logger unchanged.

    Args:
        path: Log file path
        level: Level for both the handler and the package logger
        mode: File mode, 'w' truncates an existing log

    Returns:
        The f5_as3_translator package logger
    """
    logger = logging.getLogger('f5_as3_translator')
    if not logger.handlers:
        # Create file handler for logging to file
        file_handler = logging.FileHandler(path, mode=mode)
        file_handler.setLevel(level)

        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)
        logger.setLevel(level)
    return logger
