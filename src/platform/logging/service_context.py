"""
Service context for log lines.

Identifies the process (service name, deploy environment, host/pid) so that
lines from the API process and the expiry sweeper can be told apart.
"""

import os
import socket
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'event-checkout')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Container hostnames are already unique; fall back to pid locally
    instance = os.getenv('HOSTNAME') or f'{socket.gethostname()}:{os.getpid()}'

    return f'{service_name}@{deploy_env}:{instance}'
