#!/usr/bin/env python3
"""
API-X Python SDK - Request Signing Example

This example shows how API-X requests are assembled and signed, how the
server side can verify an ``app_session_id`` token, and how to send requests
with the bundled HTTP client.
"""

import base64
import hashlib
import os
import sys

# Add src to path for development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from apix_sdk import (
    # Request assembly
    RequestBuilder,
    HttpMethod,
    URLScheme,
    new_builder,
    # Signing
    sign,
    canonicalize_body,
    # HTTP integration
    create_client,
    ServerCommunicationError,
    ConstructionError,
    configure_logging,
)

API_KEY = os.environ.get("APIX_API_KEY", "example-api-key")
APP_KEY = os.environ.get("APIX_APP_KEY", "example-app-key")


def basic_signing_example():
    """Assemble a signed POST request and inspect it"""
    print("=== Basic Request Signing Example ===")

    builder = new_builder(API_KEY, APP_KEY, scheme=URLScheme.HTTPS, host="api.example.com", port=8443)

    request = builder.assemble(
        HttpMethod.POST,
        "/method",
        entity="/entity",
        query_parameters={"param1": "value1"},
        body={"bodyParam1": "value1"}
    )

    print(f"   Method: {request.method}")
    print(f"   URL: {request.url}")
    print(f"   Headers: {request.headers}")
    print(f"   Body: {request.body!r}")
    print(f"   app_session_id: {request.session_id}")


def server_side_verification_example():
    """Recompute a token the way an API-X server does"""
    print("\n=== Server Side Verification Example ===")

    builder = new_builder(API_KEY, APP_KEY, scheme="https", host="api.example.com").with_salt(salt_length=32)
    request = builder.post("/orders", body={"item": "book", "quantity": 1})

    # The server knows the app key and receives body, Date and salt
    salt = base64.b64decode(request.headers["salt"])
    expected = sign(APP_KEY, request.body, request.headers["Date"], salt)

    print(f"   Received token:   {request.session_id}")
    print(f"   Recomputed token: {expected}")
    print(f"   Valid: {expected == request.session_id}")

    # The body is signed in canonical form, so key order does not matter
    reordered = canonicalize_body({"quantity": 1, "item": "book"})
    print(f"   Canonical body matches: {reordered == request.body}")

    # Same thing by hand
    signing_string = (
        base64.b64encode(request.body).decode() + APP_KEY + request.headers["Date"] + request.headers["salt"]
    )
    print(f"   Manual digest matches: {hashlib.sha256(signing_string.encode()).hexdigest() == expected}")


def fluent_builder_example():
    """Build a single request with the fluent API"""
    print("\n=== Fluent Builder Example ===")

    request = (RequestBuilder.builder(API_KEY, APP_KEY)
               .scheme(URLScheme.HTTPS)
               .host("api.example.com")
               .http_method(HttpMethod.GET)
               .entity("/apix")
               .method("/test")
               .add_parameter("page", "1")
               .build())

    print(f"   URL: {request.url}")
    print(f"   Date: {request.date}")


def error_handling_example():
    """Show the failures callers should expect"""
    print("\n=== Error Handling Example ===")

    try:
        new_builder(API_KEY, APP_KEY, scheme="https").get("/test")
    except ConstructionError as e:
        print(f"   No host configured: {e}")

    strict = new_builder(API_KEY, APP_KEY, scheme="https", host="api.example.com", strict=True)
    try:
        strict.post("/test", body={"when": object()})
    except Exception as e:
        print(f"   Strict builder refused body: {type(e).__name__}: {e}")


def http_client_example():
    """Send a request; every retry is a freshly signed request"""
    print("\n=== HTTP Client Example ===")

    host = os.environ.get("APIX_HOST")
    if not host:
        print("   Set APIX_HOST to run against a real server")
        return

    builder = new_builder(API_KEY, APP_KEY, scheme=os.environ.get("APIX_SCHEME", "https"), host=host)

    with create_client(timeout=10.0, retry_attempts=2) as client:
        try:
            response = client.call(builder, HttpMethod.GET, "/test", entity="/apix")
            print(f"   Response: {response}")
        except ServerCommunicationError as e:
            print(f"   Request failed ({e.error_code}): {e}")


def main():
    configure_logging(os.environ.get("APIX_LOG_LEVEL", "WARNING"))

    basic_signing_example()
    server_side_verification_example()
    fluent_builder_example()
    error_handling_example()
    http_client_example()


if __name__ == "__main__":
    main()
