import sys

from msgboard.config import Settings
from msgboard.services.mailer import ResendNotifier


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("usage: python -m msgboard.scripts.send_test_email <email> [code]")
        return 2

    email = argv[0]
    code = argv[1] if len(argv) > 1 else "123456"
    result = ResendNotifier.from_settings(Settings.from_env()).send_verification_code(email, code)
    print(result)
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
