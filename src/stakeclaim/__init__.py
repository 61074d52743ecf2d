import logging

logger = logging.getLogger("stakeclaim")
