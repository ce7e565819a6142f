from alarms import resolve_alarm_commands, run_alarm_worker
from config import load_config, setup_logging
from terminal import platform_name


def main():
    config = load_config()
    setup_logging("DEBUG")
    platform = platform_name()
    commands = resolve_alarm_commands(platform)
    print(f"Platform: {platform}")
    for command in commands:
        print(f"  available: {' '.join(command.argv)}")
    print("Playing alarm...")
    played = run_alarm_worker(config.alarm_attempts, config.alarm_interval_seconds, platform)
    print(f"Rounds played: {played}")


if __name__ == "__main__":
    main()
