"""Sign a gateway webhook payload and post it to a running webhook service.

Useful for manual end-to-end checks and duplicate-delivery testing.
"""

import argparse

import httpx

from storepay.common.signing import WEBHOOK_SIGNATURE_FIELDS, compute_signature


def build_payload(args: argparse.Namespace) -> dict[str, str]:
    """Assemble webhook fields and sign them (or use a forged signature)."""

    payload = {
        "o": args.operation_id,
        "oa": args.merchant,
        "c": args.currency,
        "s": args.amount,
        "st": args.status,
        "pid": args.payment_id,
    }
    payload["sign"] = args.forge_sign or compute_signature(payload, args.secret, WEBHOOK_SIGNATURE_FIELDS)
    return payload


def main() -> None:
    """Parse CLI args and deliver the webhook `--repeat` times."""

    parser = argparse.ArgumentParser(description="Post a signed gateway webhook.")
    parser.add_argument("--url", default="http://localhost:8002/api/payment-webhook")
    parser.add_argument("--secret", required=True)
    parser.add_argument("--merchant", required=True)
    parser.add_argument("--operation-id", required=True)
    parser.add_argument("--amount", required=True, help="Amount string exactly as signed, e.g. 10.00")
    parser.add_argument("--currency", default="USD")
    parser.add_argument("--status", default="1", help="1=success, 0=fail, 2=pending")
    parser.add_argument("--payment-id", default="")
    parser.add_argument("--forge-sign", default=None, help="Send this signature instead of a valid one")
    parser.add_argument("--json", dest="as_json", action="store_true", help="Send JSON instead of a form")
    parser.add_argument("--repeat", type=int, default=1)
    args = parser.parse_args()

    payload = build_payload(args)
    with httpx.Client(timeout=5.0) as client:
        for attempt in range(1, args.repeat + 1):
            if args.as_json:
                resp = client.post(args.url, json=payload)
            else:
                resp = client.post(args.url, data=payload)
            print(f"attempt={attempt} status={resp.status_code} body={resp.text}")


if __name__ == "__main__":
    main()
