import shlex
import subprocess

from flask import current_app


def run_restart(command: str):
    """Hand the restart over to the process manager; the request does not wait."""
    args = shlex.split(command)
    current_app.logger.warning('Restart requested: %s', command)
    proc = subprocess.Popen(args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, start_new_session=True)
    return proc.pid
