"""
CLI utility to mint caller JWTs for a tool server's HTTP transport.

The `sub` claim becomes the caller identity that the server passes to its
config and token resolvers. In production these tokens come from an identity
provider; this script stands in for one during development.

Usage examples:

    # Token for caller "alice" (default secret, 8 hours)
    python -m scripts.generate_token --sub alice

    # Custom expiration
    python -m scripts.generate_token --sub ci-agent --exp-hours 2

    # Custom secret (must match XTRN_JWT_SECRET_KEY on the server)
    python -m scripts.generate_token --sub alice --secret my-prod-secret

    # Expired token (for testing rejection)
    python -m scripts.generate_token --sub alice --exp-hours -1

The script also prints a curl command calling one tool (--tool, --args).
"""

import argparse
import datetime
import json

import jwt


def generate_token(
    subject: str,
    secret: str,
    algorithm: str = "HS256",
    exp_hours: float = 8.0,
) -> str:
    """
    Generate a signed caller JWT.

    Args:
        subject: The "sub" claim, i.e. the caller identity
        secret: The signing key (must match the server's XTRN_JWT_SECRET_KEY)
        algorithm: JWT signing algorithm (default: HS256)
        exp_hours: Hours until expiration (negative = already expired)

    Returns:
        The encoded JWT token string
    """
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": subject,
        "iat": now,
        "exp": now + datetime.timedelta(hours=exp_hours),
    }
    return jwt.encode(payload, secret, algorithm=algorithm)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Generate caller JWTs for an xtrn tool server.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Caller token:
    %(prog)s --sub alice

  Expired token (for testing):
    %(prog)s --sub alice --exp-hours -1

  Curl for a specific tool call:
    %(prog)s --sub alice --tool search --args '{"query": "x"}'
        """,
    )
    parser.add_argument(
        "--sub",
        required=True,
        help="Subject claim: the caller identity (e.g., 'alice', 'ci-agent')",
    )
    parser.add_argument(
        "--secret",
        default="dev-secret-change-me",
        help="JWT signing secret (must match server's XTRN_JWT_SECRET_KEY)",
    )
    parser.add_argument(
        "--algorithm",
        default="HS256",
        help="JWT signing algorithm (default: HS256)",
    )
    parser.add_argument(
        "--exp-hours",
        type=float,
        default=8.0,
        help="Hours until token expires (negative = already expired, default: 8)",
    )
    parser.add_argument("--tool", default="search", help="Tool name for the sample curl")
    parser.add_argument("--args", default="{}", help="JSON arguments for the sample curl")

    args = parser.parse_args()

    token = generate_token(
        subject=args.sub,
        secret=args.secret,
        algorithm=args.algorithm,
        exp_hours=args.exp_hours,
    )
    exp_time = datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(
        hours=args.exp_hours
    )

    print(f"Subject:    {args.sub}")
    print(f"Expires:    {exp_time.isoformat()}")
    print(f"Algorithm:  {args.algorithm}")
    print()
    print(f"Token: {token}")

    call = {
        "jsonrpc": "2.0",
        "id": 2,
        "method": "tools/call",
        "params": {"name": args.tool, "arguments": json.loads(args.args)},
    }
    print()
    print("Usage with curl (after initializing a session):")
    print("  curl -X POST http://localhost:8080/mcp \\")
    print('    -H "Content-Type: application/json" \\')
    print('    -H "Accept: application/json, text/event-stream" \\')
    print('    -H "Mcp-Session-Id: <session-id>" \\')
    print(f'    -H "Authorization: Bearer {token}" \\')
    print(f"    -d '{json.dumps(call)}'")


if __name__ == "__main__":
    main()
