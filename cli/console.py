"""Console UI for kanatype application."""

import time

import requests

from core.config import MAX_DIFFICULTY
from cli.api_client import KanatypeAPIClient


class ConsoleUI:
    """Console user interface for kanatype application."""

    def __init__(self, client: KanatypeAPIClient):
        self.client = client

    def print_sentence(self, data: dict, typed: dict = None):
        """Print the sentence, its reading and how far the learner got."""
        print('\n' + '=' * 40)
        print(f"  {data['surface']}")
        if data['surface'] != data['reading']:
            print(f"  ({data['reading']})")
        if typed:
            done = ''.join(t['unit'] for t in data['tokens'][:typed['index']])
            print(f"  typed: {done}")
        print('=' * 40)

    def print_result(self, completed: dict):
        """Print the outcome of a completed sentence."""
        result = completed['result']
        profile = completed['profile']
        before = completed['difficulty_before']
        after = profile['current_difficulty']
        print('-' * 40)
        print(f"Accuracy: {result['correct_chars']}/{result['total_chars']} "
              f"({result['accuracy'] * 100:.0f}%)")
        print(f"Average per character: {result['avg_time_ms']:.0f}ms")
        if result['hints_used']:
            print(f"Hints used: {result['hints_used']}")
        print('-' * 40)
        if after > before:
            print(f"\n*** Difficulty up: {before:.2f} -> {after:.2f} ***\n")
        elif after < before:
            print(f"\n*** Difficulty down: {before:.2f} -> {after:.2f} ***\n")

    def print_status(self, status: dict):
        """Print detailed status."""
        profile = status['profile']
        print('\n' + '=' * 50)
        print('STATUS SUMMARY')
        print('=' * 50)
        print(f"\nDifficulty: {profile['current_difficulty']:.2f}/{MAX_DIFFICULTY}")
        print(f"Overall skill: {profile['overall_skill'] * 100:.0f}%")
        print(f"Speed baseline: {profile['speed_baseline_ms']:.0f}ms")
        print(f"Characters typed: {profile['chars_typed_total']}")
        print(f"\nUnits tracked: {status['tracked_units']} ({status['mastered_units']} mastered)")
        print(f"Due for review: {status['due_count']}")
        print(f"Day streak: {status['day_streak']}")
        if status.get('last_session'):
            last = status['last_session']
            print(f"Last session: {last['accuracy']}% accuracy, best streak {last['max_streak']}")
        print('\n' + '=' * 50 + '\n')

    def practice(self, data: dict) -> bool:
        """Type one sentence to completion. Returns False when the learner quits."""
        typed = None
        started = time.monotonic()
        while True:
            user_input = input('==> ').strip()

            if user_input.lower() == 'exit':
                self.client.abandon()
                print('Goodbye!')
                return False

            elif user_input == '?':
                try:
                    hint = self.client.get_hint()
                    print(f"  {hint['unit']} = {hint['romaji']}")
                except requests.RequestException as e:
                    print(f"Error getting hint: {e}")

            elif user_input.lower() == 'status':
                try:
                    self.print_status(self.client.get_status())
                except requests.RequestException as e:
                    print(f"Error getting status: {e}")
                self.print_sentence(data, typed)

            elif user_input.lower() == 'skip':
                self.client.abandon()
                print('Skipped.')
                return True

            elif user_input == '':
                self.print_sentence(data, typed)

            else:
                elapsed_ms = int((time.monotonic() - started) * 1000)
                typed = self.client.type_text(user_input, elapsed_ms)
                started = time.monotonic()
                if typed['errors']:
                    print(f"  {typed['errors']} miss(es) on {typed['current_unit'] or 'last unit'}")
                if typed['complete']:
                    self.print_result(self.client.complete())
                    return True
                self.print_sentence(data, typed)

    def run(self):
        """Run the main application loop."""
        # Check server connection
        try:
            health = self.client.health_check()
            print(f"Connected to kanatype server ({health['service']})")
        except requests.RequestException:
            print(f"Error: Cannot connect to server at {self.client.base_url}")
            print("Make sure the server is running: python run_server.py")
            return

        status = self.client.get_status()
        profile = status['profile']
        print(f"Restored: difficulty {profile['current_difficulty']:.2f}, "
              f"{status['tracked_units']} units tracked, day streak {status['day_streak']}")

        print('\nStarting kana typing practice!')
        print('Type the romaji for each sentence.')
        print('Commands: "?" for a hint, "status" for progress, "skip" for a new sentence, '
              '"exit" to quit\n')

        while True:
            try:
                data = self.client.get_next_sentence()
            except requests.RequestException as e:
                print(f"Error getting next sentence: {e}")
                return

            self.print_sentence(data)
            try:
                if not self.practice(data):
                    return
            except requests.RequestException as e:
                print(f"Error submitting input: {e}")
