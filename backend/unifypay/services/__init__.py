from .balance import BalanceAggregator
from .dashboard import DashboardAggregator
from .attachments import decode_data_url
from .codes import next_code, format_code

__all__ = [
    "BalanceAggregator",
    "DashboardAggregator",
    "decode_data_url",
    "next_code",
    "format_code",
]
