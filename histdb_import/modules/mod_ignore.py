import logging


def is_ignored(entry, ignore):
    """
    True when the whole command text equals one of the ignore strings.
    "ls -la" is not ignored by "ls".
    """
    for cmd in ignore:
        if entry.cmd == cmd:
            logging.info(f"[-] Skipping {entry}")
            return True
    return False
