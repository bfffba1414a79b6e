#!/usr/bin/env python3
"""Smoke-test a running Kubeship API: deploy a public image and poll its status."""

import json
import os
import time
from datetime import datetime

import httpx

API_URL = os.getenv("KUBESHIP_API_URL", "http://localhost:8080")
IMAGE = os.getenv("SMOKE_IMAGE", "nginxdemos/hello:latest")
APP_NAME = os.getenv("SMOKE_APP", "smoke")
PORT = int(os.getenv("SMOKE_PORT", "80"))


def smoke_deploy():
    """Deploy IMAGE as APP_NAME and poll until it is ready or fails."""
    print(f"[{datetime.now()}] Starting smoke deploy...")
    print(f"API URL: {API_URL}")

    with httpx.Client(base_url=API_URL, timeout=30) as client:
        # 1. Health
        print("\n1. Checking health...")
        response = client.get("/health")
        print(f"Status: {response.status_code}")
        if response.status_code != 200:
            print(f"Error: {response.text}")
            return

        # 2. Deploy
        print(f"\n2. Deploying {IMAGE} as {APP_NAME} (port {PORT})...")
        payload = {"image_name": IMAGE, "app_name": APP_NAME, "port": PORT}
        response = client.post("/deploy", json=payload)
        print(f"Status: {response.status_code}")
        print(f"Full response: {json.dumps(response.json(), indent=2)}")
        if response.status_code != 200:
            return
        job_id = response.json()["job_id"]

        # 3. Poll status
        print(f"\n3. Polling status for {job_id}...")
        for _ in range(30):
            status = client.get(f"/status/{job_id}").json()
            print(f"  {status.get('status')}: {status.get('message')}")
            if status.get("status") in ("completed", "failed"):
                break
            time.sleep(2)
        else:
            print("Timed out waiting for the deployment to become ready")

        # 4. Missing job ids should 404
        print("\n4. Checking an unknown job id...")
        response = client.get("/status/does-not-exist-1000000000000")
        print(f"Status: {response.status_code} {response.text}")

    print(f"\n[{datetime.now()}] Smoke deploy finished")


if __name__ == "__main__":
    smoke_deploy()
