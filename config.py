import logging

# General
LOG_LEVEL = logging.INFO  # DEBUG to see every failed sub-request
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(filename)s:%(lineno)d - %(message)s'
LOG_FILE = "load_and_fire.log"  # Will be created in the project root

# Server Config
SERVER_HOST = '0.0.0.0'
SERVER_PORT = 8081
FIRE_ROUTE = '/load_and_fire/'
MAX_INBOUND_BODY_BYTES = 16 * 1024 * 1024  # Body is held in memory once and shared by every request

# Control headers (stripped before forwarding)
COUNT_HEADER = 'RC_GO_COUNT'
URL_HEADER = 'RC_GO_URL'

# Fan-out Config
REQUEST_TIMEOUT_SECONDS = 10  # Per outbound request, connect through body read
MAX_FIRE_COUNT = 10000  # Upper bound accepted in RC_GO_COUNT
