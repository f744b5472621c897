from studio_logs.chooseLogType import get_logger
import os

env = os.getenv("ENV", "dev")

server_logger = get_logger(mode=env, log_type="server")
card_logger = get_logger(mode=env, log_type="cards")
analysis_logger = get_logger(mode=env, log_type="analysis")
wizard_logger = get_logger(mode=env, log_type="wizard")
