#!/usr/bin/env python3
"""
SleepDebt CLI - Cumulative sleep debt tracker

Records how long you slept each night against an ideal target derived from
your age, carries the running deficit (or surplus) forward from night to night,
and suggests how to recover.

Each run is one session:
- First run creates your sleep profile (name, age, usual sleep, wake-up time)
- If you carry debt from last time, a nap can pay part of it down
- Tonight's sleep minus interruptions is added to the running balance
- A suggestion and a bedtime hint are printed

Data lives in a pretty-printed JSON file next to this script. When matplotlib
is installed, a chart of the running balance is saved there too.

License: MIT
"""

import argparse
import json
import math
import os
import re
import sys
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Optional

# Configuration
DATA_FILE = Path(__file__).parent / "sleep_data.json"
CHART_FILE = Path(__file__).parent / "sleep_debt.png"
BEDTIME_BUFFER_MINUTES = 15  # typical sleep onset latency

# Ideal nightly sleep by age: (inclusive upper age bound, hours)
IDEAL_SLEEP_BY_AGE = (
    (12, 10.0),  # children
    (18, 9.0),   # teens
    (64, 8.0),   # adults
)
SENIOR_IDEAL_SLEEP = 7.0

# Debt thresholds (hours) for the end-of-session suggestion
CATCHUP_THRESHOLD = 3.0
SLEEP_EARLIER_THRESHOLD = 1.0

SUGGESTIONS = {
    'catchup': 'Plan to catch up on sleep over the next few days.',
    'sleep_earlier': 'Try sleeping earlier tonight by an hour.',
    'short_nap': 'Take a short nap of 20-30 minutes.',
    'no_debt': 'Congratulations! You have no sleep debt.',
}

WAKE_TIME_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):[0-5][0-9]$')

FAREWELL = "👋 until next time!"


# ANSI colors for terminal output
class Colors:
    RED = '\033[91m'
    YELLOW = '\033[93m'
    GREEN = '\033[92m'
    CYAN = '\033[96m'
    END = '\033[0m'


LEVEL_COLORS = {
    'info': Colors.CYAN,
    'success': Colors.GREEN,
    'warning': Colors.YELLOW,
    'error': Colors.RED,
}


class Cancelled(Exception):
    """The user aborted a prompt (Ctrl-C or end of input)."""


class StorageError(Exception):
    """The data file could not be read or written."""

    def __init__(self, path, reason):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


# =============================================================================
# DATA MODEL
# =============================================================================

@dataclass
class Profile:
    """Sleep parameters captured once, on the first run."""
    name: str
    age: int
    avg_sleep: float  # reported baseline, informational only
    wake_up_time: str  # "HH:MM", 24h
    ideal_sleep: float

    def to_dict(self):
        return {
            'name': self.name,
            'age': self.age,
            'avgSleep': self.avg_sleep,
            'wakeUpTime': self.wake_up_time,
            'idealSleep': self.ideal_sleep,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            name=str(data['name']),
            age=int(data['age']),
            avg_sleep=float(data['avgSleep']),
            wake_up_time=str(data['wakeUpTime']),
            ideal_sleep=float(data['idealSleep']),
        )


@dataclass
class SleepRecord:
    """One night in the ledger.

    sleep_debt is the cumulative balance after this night, not the night's
    own deficit. Positive means owed sleep, zero or negative means surplus.
    """
    date: str  # YYYY-MM-DD
    total_sleep: float
    sleep_debt: float

    def to_dict(self):
        return {
            'date': self.date,
            'totalSleep': self.total_sleep,
            'sleepDebt': self.sleep_debt,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            date=str(data['date']),
            total_sleep=float(data['totalSleep']),
            sleep_debt=float(data['sleepDebt']),
        )


@dataclass
class Store:
    """Everything persisted between sessions."""
    profile: Optional[Profile] = None
    history: list = field(default_factory=list)

    def to_dict(self):
        return {
            'profile': self.profile.to_dict() if self.profile else None,
            'history': [record.to_dict() for record in self.history],
        }

    @classmethod
    def from_dict(cls, data):
        profile = data.get('profile')
        return cls(
            profile=Profile.from_dict(profile) if profile else None,
            history=[SleepRecord.from_dict(r) for r in data.get('history') or []],
        )


def derive_ideal_sleep(age):
    """Return the ideal nightly sleep in hours for an age in years."""
    for upper_age, hours in IDEAL_SLEEP_BY_AGE:
        if age <= upper_age:
            return hours
    return SENIOR_IDEAL_SLEEP


class Ledger:
    """Ordered sleep history with a running debt balance.

    Wraps the store's history list; mutations are visible through the store.
    """

    def __init__(self, records):
        self.records = records

    def __len__(self):
        return len(self.records)

    def previous_debt(self):
        """Balance carried into tonight (0 for an empty ledger)."""
        if not self.records:
            return 0.0
        return self.records[-1].sleep_debt

    def apply_nap_offset(self, nap_hours):
        """Pay down the most recent balance with a nap. May go below zero."""
        if not self.records:
            raise ValueError("no recorded night to apply a nap to")
        self.records[-1].sleep_debt -= nap_hours

    def append(self, record):
        self.records.append(record)


# =============================================================================
# SESSION CALCULATIONS
# =============================================================================

def parse_float(text):
    """Parse a finite float, raising ValueError otherwise."""
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {text!r}")
    return value


def parse_interruptions(text):
    """Parse a comma-separated list of interruption minutes, e.g. "10,5".

    Blank input means no interruptions. Every token must be a non-negative
    number.
    """
    if not text or not text.strip():
        text = '0'
    minutes = []
    for token in text.split(','):
        value = parse_float(token.strip())
        if value < 0:
            raise ValueError(f"interruption cannot be negative: {token.strip()!r}")
        minutes.append(value)
    return minutes


def compute_total_sleep(reported_hours, interruption_minutes):
    """Reported sleep minus interruptions. Can go negative."""
    return reported_hours - sum(interruption_minutes) / 60


def compute_sleep_debt(ideal_sleep, total_sleep, previous_debt):
    """Tonight's deficit folded into the carried balance."""
    return (ideal_sleep - total_sleep) + previous_debt


def classify_debt(debt):
    """Return the SUGGESTIONS key for a debt balance."""
    if debt > CATCHUP_THRESHOLD:
        return 'catchup'
    if debt > SLEEP_EARLIER_THRESHOLD:
        return 'sleep_earlier'
    if debt > 0:
        return 'short_nap'
    return 'no_debt'


def time_to_decimal(time_str):
    """Convert HH:MM time to decimal hours from midnight."""
    parts = time_str.split(':')
    return float(parts[0]) + float(parts[1]) / 60


def decimal_to_time(decimal):
    """Convert decimal hours to HH:MM format, wrapping around midnight."""
    total_minutes = round(decimal * 60) % (24 * 60)
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def hours_to_hm(hours):
    """Convert decimal hours to h:mm format."""
    total_minutes = round(abs(hours) * 60)
    sign = '-' if hours < 0 and total_minutes else ''
    return f"{sign}{total_minutes // 60}:{total_minutes % 60:02d}"


def recommended_bedtime(wake_up_time, ideal_sleep, buffer_minutes=BEDTIME_BUFFER_MINUTES):
    """
    Latest bedtime that still allows ideal_sleep hours before wake_up_time.
    Adds buffer for sleep onset latency (time to fall asleep).
    """
    bedtime = time_to_decimal(wake_up_time) - ideal_sleep - buffer_minutes / 60
    return decimal_to_time(bedtime)


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def is_valid_hours(text):
    """A sleep duration strictly between 0 and 24 hours."""
    try:
        hours = parse_float(text)
    except ValueError:
        return False
    return 0 < hours < 24


def is_valid_wake_time(text):
    return bool(WAKE_TIME_PATTERN.match(text))


def is_non_negative(text):
    try:
        return parse_float(text) >= 0
    except ValueError:
        return False


def is_non_negative_int(text):
    return text.isascii() and text.isdigit()


def is_minutes_list(text):
    try:
        parse_interruptions(text)
    except ValueError:
        return False
    return True


# =============================================================================
# PERSISTENCE
# =============================================================================

class JsonStore:
    """The whole store in one JSON file, read and written in full."""

    def __init__(self, path):
        self.path = Path(path)

    def load(self):
        """Load the store. A missing file is an empty store."""
        if not self.path.exists():
            return Store()
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(self.path, f"invalid JSON: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(self.path, f"cannot read: {e}") from e

        if not isinstance(data, dict):
            raise StorageError(self.path, f"expected an object, got {type(data).__name__}")
        try:
            return Store.from_dict(data)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StorageError(self.path, f"malformed data: {e!r}") from e

    def save(self, store):
        """Overwrite the file with the full store."""
        try:
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(store.to_dict(), f, indent=2, ensure_ascii=False)
                f.write('\n')
        except OSError as e:
            raise StorageError(self.path, f"cannot write: {e}") from e


# =============================================================================
# INTERACTION
# =============================================================================

class Console:
    """Prompts and colored status lines on the terminal."""

    def __init__(self, color=True):
        self.color = color

    def paint(self, text, color):
        if not self.color:
            return text
        return f"{color}{text}{Colors.END}"

    def status(self, level, message):
        """Print a line tagged info, success, warning or error."""
        print(self.paint(message, LEVEL_COLORS[level]))

    def _read(self, prompt):
        try:
            return input(prompt)
        except (KeyboardInterrupt, EOFError):
            print()
            raise Cancelled() from None

    def ask(self, message, validate=None, default=None,
            invalid="Invalid input, please try again."):
        """Prompt until validate accepts the answer. Returns the raw string."""
        suffix = f" [{default}]" if default is not None else ""
        while True:
            answer = self._read(f"{self.paint('?', Colors.GREEN)} {message}{suffix} ").strip()
            if not answer and default is not None:
                answer = default
            if validate is None or validate(answer):
                return answer
            self.status('warning', invalid)

    def ask_int(self, message, invalid="Please enter a whole number (0 or more)."):
        return int(self.ask(message, validate=is_non_negative_int, invalid=invalid))

    def confirm(self, message, default=False):
        hint = "Y/n" if default else "y/N"
        while True:
            answer = self._read(f"{self.paint('?', Colors.GREEN)} {message} ({hint}) ").strip().lower()
            if not answer:
                return default
            if answer in ('y', 'yes'):
                return True
            if answer in ('n', 'no'):
                return False
            self.status('warning', "Please answer y or n.")


# =============================================================================
# CHART
# =============================================================================

def render_debt_chart(history, path):
    """Save a bar chart of the running debt balance per recorded night."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt
    import numpy as np

    balances = np.array([record.sleep_debt for record in history], dtype=float)
    positions = np.arange(len(balances))
    colors = np.where(balances > 0, '#e74c3c', '#2ecc71')

    fig, ax = plt.subplots(figsize=(max(6, len(balances) * 0.6), 4))
    ax.bar(positions, balances, color=colors, edgecolor='white', linewidth=0.5)
    ax.axhline(0, color='gray', linewidth=1)
    ax.set_xticks(positions)
    ax.set_xticklabels([record.date for record in history], rotation=45, ha='right', fontsize=8)
    ax.set_ylabel('Sleep debt (hours)')
    ax.set_title('Running Sleep Debt', fontweight='bold')
    ax.grid(axis='y', alpha=0.3)
    fig.tight_layout()
    fig.savefig(path, dpi=120)
    plt.close(fig)
    return path


# =============================================================================
# SESSION
# =============================================================================

def create_profile(console):
    """Collect a new profile from the user."""
    console.status('info', "Welcome to Sleep Debt CLI! Let's create your sleep profile.")
    name = console.ask("What is your name?")
    age = console.ask_int("How old are you?")
    avg_sleep = console.ask(
        "How many hours do you usually sleep per night? (e.g., 8, 6.5)",
        validate=is_valid_hours,
        invalid="Please enter a number of hours between 0 and 24.",
    )
    wake_up_time = console.ask(
        "What time do you want to wake up (e.g., 07:00)?",
        validate=is_valid_wake_time,
        invalid="Please enter a 24-hour time as HH:MM.",
    )
    return Profile(
        name=name,
        age=age,
        avg_sleep=float(avg_sleep),
        wake_up_time=wake_up_time,
        ideal_sleep=derive_ideal_sleep(age),
    )


def offer_nap(store, ledger, console, persistence):
    """Let an outstanding balance be reduced by a nap taken since last time."""
    debt = ledger.previous_debt()
    if debt <= 0:
        return
    napped = console.confirm(
        f"You have a sleep debt of {debt:.2f} hours. Did you take any naps to reduce it?"
    )
    if not napped:
        return
    nap_minutes = console.ask(
        "How many minutes did you nap? (e.g., 30, 45)",
        validate=is_non_negative,
        invalid="Please enter a number of minutes (0 or more).",
    )
    ledger.apply_nap_offset(float(nap_minutes) / 60)
    persistence.save(store)
    console.status('success', "Nap added successfully!")


def report(record, profile, console):
    """Print the balance and what to do about it."""
    debt = record.sleep_debt
    category = classify_debt(debt)
    if category == 'no_debt':
        console.status('success', SUGGESTIONS[category])
    else:
        console.status('error', f"You have a sleep debt of {debt:.2f} hours. Suggestions:")
        console.status('warning', f" - {SUGGESTIONS[category]}")

    bedtime = recommended_bedtime(profile.wake_up_time, profile.ideal_sleep)
    console.status(
        'info',
        f"To wake at {profile.wake_up_time} with {hours_to_hm(profile.ideal_sleep)} hours of sleep, "
        f"be in bed by {bedtime}.",
    )


def run_session(persistence, console, today=date.today, chart_path=None):
    """Run one tracking session and return the record it appended.

    Raises Cancelled if the user aborts a prompt; the profile and nap
    adjustments are saved as soon as they are made and are kept.
    """
    store = persistence.load()

    if store.profile is None:
        store.profile = create_profile(console)
        persistence.save(store)
        console.status('success', "Profile created successfully!")
    else:
        console.status('success', f"Welcome back, {store.profile.name}!")
    profile = store.profile

    ledger = Ledger(store.history)
    offer_nap(store, ledger, console, persistence)

    reported = console.ask(
        "How many hours did you sleep last night? (e.g., 8, 6.5)",
        validate=is_valid_hours,
        invalid="Please enter a number of hours between 0 and 24.",
    )
    interruptions = console.ask(
        "Did you experience any interruptions? If so, how long (in minutes, comma-separated)?",
        validate=is_minutes_list,
        default='0',
        invalid="Please enter minutes as non-negative numbers, e.g. 10,5.",
    )

    total_sleep = compute_total_sleep(float(reported), parse_interruptions(interruptions))
    # Read after the nap step so a nap reduces what is carried into tonight.
    sleep_debt = compute_sleep_debt(profile.ideal_sleep, total_sleep, ledger.previous_debt())

    record = SleepRecord(date=today().isoformat(), total_sleep=total_sleep, sleep_debt=sleep_debt)
    ledger.append(record)
    persistence.save(store)

    report(record, profile, console)

    if chart_path:
        try:
            render_debt_chart(store.history, chart_path)
        except ImportError:
            console.status('warning', "Could not save chart (matplotlib may not be installed).")
        else:
            console.status('info', f"Debt chart saved to {chart_path}")

    return record


def create_parser():
    """Create and return the argument parser for CLI."""
    return argparse.ArgumentParser(
        prog='sleepdebt',
        description='SleepDebt - Track cumulative sleep debt one night at a time',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Each run records one night. There are no subcommands.

Files (next to this script):
  {DATA_FILE.name}    Profile and nightly history
  {CHART_FILE.name}     Debt chart, saved when matplotlib is installed

Set NO_COLOR to disable colored output.
        """
    )


def main(argv=None):
    """Main entry point for the application."""
    create_parser().parse_args(argv)

    console = Console(color='NO_COLOR' not in os.environ)
    persistence = JsonStore(DATA_FILE)

    try:
        run_session(persistence, console, chart_path=CHART_FILE)
    except Cancelled:
        print(FAREWELL)
    except StorageError as e:
        console.status('error', f"Storage error: {e}")
        console.status('error', "Check that the data file is valid JSON and writable.")
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
