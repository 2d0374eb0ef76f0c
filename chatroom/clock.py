from datetime import datetime


def now() -> datetime:
    return datetime.now()


def epoch_ms(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def clock_time(moment: datetime) -> str:
    return moment.strftime('%H:%M:%S')
