"""End-to-end smoke flow against a running dev server.

Prepare the seller first:
    python backend/manage.py ensure_e2e_seller
"""

import os
import sys
import time

import requests

API_BASE = os.environ.get("API_BASE", "http://127.0.0.1:8000").rstrip("/")
SELLER_EMAIL = os.environ.get("E2E_SELLER_EMAIL", "e2e_seller@example.com")
SELLER_PASSWORD = os.environ.get("E2E_SELLER_PASSWORD", "e2e_seller_pass")


def check(resp, expected):
    print(resp.request.method, resp.url, resp.status_code)
    if resp.status_code != expected:
        print("Unexpected body:", resp.text)
        sys.exit(1)
    return resp.json() if resp.content else None


def main():
    api = f"{API_BASE}/api/v1"

    check(requests.get(f"{api}/health/", timeout=10), 200)
    catalog = check(requests.get(f"{api}/catalog/", timeout=10), 200)
    print("Categories:", [c["key"] for c in catalog["categories"]])

    login = check(
        requests.post(f"{api}/auth/login/", json={"email": SELLER_EMAIL, "password": SELLER_PASSWORD}, timeout=10),
        200,
    )
    headers = {"Authorization": f"Bearer {login['access']}"}

    title = f"E2E Maize {int(time.time())}"
    created = check(
        requests.post(
            f"{api}/products/",
            headers=headers,
            json={
                "title": title,
                "category": "crops",
                "subcategory": "Maize",
                "quantity": "100 kg",
                "location": catalog["locations"][0],
            },
            timeout=10,
        ),
        201,
    )
    product_id = created["id"]
    print("Created product", product_id, "whatsapp:", created["whatsapp_url"])

    found = check(requests.get(f"{api}/products/", params={"q": title}, timeout=10), 200)
    assert any(p["id"] == product_id for p in found["results"]), "new product not listed"

    check(requests.patch(f"{api}/products/{product_id}/status/", headers=headers, json={"status": "sold"}, timeout=10), 200)

    found = check(requests.get(f"{api}/products/", params={"q": title}, timeout=10), 200)
    assert all(p["id"] != product_id for p in found["results"]), "sold product still listed"

    check(requests.delete(f"{api}/products/{product_id}/", headers=headers, timeout=10), 204)
    check(requests.post(f"{api}/auth/logout/", headers=headers, json={"refresh": login["refresh"]}, timeout=10), 204)
    print("OK")


if __name__ == "__main__":
    main()
