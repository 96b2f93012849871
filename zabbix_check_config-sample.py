"""Check Configuration. This is unambiguously a Python sourcefile.

Copy it to zabbix_check_config.py somewhere on the Python path of the Zabbix
agent (e.g. /etc/zabbix/ with PYTHONPATH=/etc/zabbix in the agent's environment)
and change what needs changing. Anything left out keeps the default found
in zabbix_check/config.py.
"""

# Control tools are looked for here, in this order.
SEARCH_PATH = '/usr/local/sbin:/usr/local/bin:/sbin:/bin:/usr/sbin:/usr/bin'
# rabbitmqctl can take a few seconds just to start up.
COMMAND_TIMEOUT = 10

# Where discovery results are kept between invocations. Either 'file' or 'redis'.
CACHE_BACKEND = 'file'
CACHE_DIRECTORY = '/var/cache/zabbix_check'
# CACHE_BACKEND = 'redis'
# REDIS_CACHE_SERVER = '127.0.0.1'
# REDIS_CACHE_PORT = 6379
# REDIS_CACHE_PREFIX = 'zabbix_check;'
REDIS_CONNECT_TIMEOUT = 2

DISK_EXCLUDE = r'^(ram|loop|fd|sr|zram)\d+$'
DISK_SAMPLE_INTERVAL = 1

REDIS_CONFIG_GLOB = '/etc/redis/*.conf'

NTP_SERVER = 'pool.ntp.org'

# Determines the logging level if not None. Logging goes to stderr, which the
# agent doesn't treat as part of the answer.
import logging
LOG_LEVEL = logging.WARNING
# LOG_LEVEL = None
