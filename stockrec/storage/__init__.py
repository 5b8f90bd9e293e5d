from .signal_log import SignalLogStore, SignalScope, calculate_win_rate
