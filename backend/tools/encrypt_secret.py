import argparse
import getpass

from security import encrypt_secret


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Encrypt a secret with ENCRYPTION_KEY, e.g. for WALLET_RPC_PASSWORD_ENCRYPTED."
    )
    parser.add_argument(
        "secret",
        nargs="?",
        help="Value to encrypt; prompted for when omitted so it stays out of shell history.",
    )
    args = parser.parse_args()
    secret = args.secret or getpass.getpass("Secret: ")
    if not secret:
        raise SystemExit("Nothing to encrypt.")
    print(encrypt_secret(secret))


if __name__ == "__main__":
    main()
