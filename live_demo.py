#!/usr/bin/env python
"""
╔══════════════════════════════════════════════════════════════════════════════╗
║                          ECSIGN LIVE DEMO                                     ║
║                ECDSA P-256 Message Signing Walkthrough                        ║
╚══════════════════════════════════════════════════════════════════════════════╝

This script walks a presenter through the complete signing workflow:
- Key pair generation and JWK export
- Signing a timestamped message envelope
- Local verification and tamper detection
- Building a self-contained signed package
- Independent verification with only public data
"""

import sys
import tempfile
from pathlib import Path

from ecsign.config import WorkbenchConfig
from ecsign.exchange.external_verifier import verify_fields
from ecsign.workbench import Workbench


def print_header(title):
    """Print a formatted section header"""
    print("\n" + "═" * 70)
    print(f"  {title}")
    print("═" * 70)


def print_step(step_num, description):
    """Print a numbered step"""
    print(f"\n  [{step_num}] {description}")


def pause(message="Press ENTER to continue..."):
    """Pause for presenter to explain"""
    if sys.stdin.isatty():
        print(f"\n  [PAUSE] {message}")
        input()


def flip_char(text, index=0):
    """Replace one character with a different one from the same alphabet"""
    replacement = 'B' if text[index] == 'A' else 'A'
    return text[:index] + replacement + text[index + 1:]


def main():

    print("\n" * 2)
    print("╔" + "═" * 68 + "╗")
    print("║" + "        ECSIGN - ECDSA P-256 SIGNING WORKBENCH".center(68) + "║")
    print("║" + "                     Live Demo".center(68) + "║")
    print("╚" + "═" * 68 + "╝")

    pause("Press ENTER to begin the demonstration...")

    export_dir = Path(tempfile.mkdtemp(prefix="ecsign-demo-"))
    bench = Workbench(WorkbenchConfig(export_dir=export_dir))

    print_header("PART 1: KEY GENERATION")

    print_step("1.1", "Generating an ECDSA P-256 key pair")
    result = bench.generate()
    print(f"  [OK] {result['message']}")
    print("\n  Public JWK:")
    print(result['public_jwk'].to_json())

    print_step("1.2", "Exporting the public key")
    result = bench.export_public()
    print(f"  [OK] {result['message']}")

    pause()

    print_header("PART 2: SIGNING")

    print_step("2.1", "Signing 'hello world'")
    result = bench.sign("hello world")
    print(f"  Envelope:  {result['envelope_json']}")
    print(f"  Signature: {result['signature']}")

    print_step("2.2", "Rejecting an empty message")
    result = bench.sign("   ")
    print(f"  [X] {result['message']}")

    print_step("2.3", "Local verification")
    result = bench.verify_local()
    print(f"  {result['message']}")

    pause()

    print_header("PART 3: SIGNED PACKAGE")

    result = bench.make_package()
    package = result['package']
    print(package.to_json())

    print_header("PART 4: EXTERNAL VERIFICATION")

    verifier = bench.open_external_verifier()['verifier']
    verifier.load_example()

    print_step("4.1", "Untouched package")
    print(f"  {verifier.verify()}")

    print_step("4.2", "One character of the signature flipped")
    report = verify_fields(
        flip_char(verifier.fields.signature),
        verifier.fields.public_key,
        verifier.fields.message,
    )
    print(f"  {report}")

    print_step("4.3", "Garbage in the public key field")
    report = verify_fields(verifier.fields.signature, "not json", verifier.fields.message)
    print(f"  {report}")

    print_header("ACTIVITY LOG")
    print(bench.log.render())

    print(f"\n  Files written to {export_dir}")


if __name__ == "__main__":
    main()
