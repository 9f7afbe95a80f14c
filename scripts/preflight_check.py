#!/usr/bin/env python3
import sys
import os

print("Running preflight import check...")
try:
    # Set dummy env vars to avoid KeyErrors during config load if any
    os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")

    import healthid.main
    print("Import healthid.main: OK")

    from healthid.settings import settings
    from healthid.core.encryption import UnconfiguredEncryptor, build_encryptor

    if not settings.API_URL:
        print("WARNING: API_URL is not set; every remote step will fail")

    encryptor = build_encryptor(settings)
    if isinstance(encryptor, UnconfiguredEncryptor):
        print(f"WARNING: {encryptor.reason}; aadhaar/otp steps will return an internal error")
    else:
        print("ABHA public key: OK")

    print("Preflight check passed.")
    sys.exit(0)
except Exception as e:
    print(f"Preflight check FAILED: {e}")
    import traceback
    traceback.print_exc()
    sys.exit(1)
