from locust import HttpUser, task, between
import csv
import os
import random

# Wallets from CSV (column "wallet") when WALLETS_CSV is set, else a small built-in sample
WALLETS_CSV = os.getenv("WALLETS_CSV", "")

wallets = [
    "0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed",
    "0xfb6916095ca1df60bb79ce92ce3ea74c37c5d359",
    "0xdbf03b407c01e7cd3cbea99509d93f8dddc8c6fb",
    "0xd1220a0cf47c7b9be7a2e6ba89f429762e7b9adb",
]
if WALLETS_CSV:
    with open(WALLETS_CSV) as f:
        wallets = [row["wallet"] for row in csv.DictReader(f)]


class AirdropUser(HttpUser):
    wait_time = between(1, 2)

    @task(5)
    def wallet_report(self):
        # concurrent lookups for different wallets must not interfere
        wallet = random.choice(wallets)
        self.client.get(f"/api/wallet/{wallet}", name="/api/wallet/[address]")

    @task(1)
    def invalid_address(self):
        with self.client.get("/api/wallet/0x123", catch_response=True) as resp:
            if resp.status_code == 400:
                resp.success()

    @task(1)
    def requirements(self):
        self.client.get("/api/requirements")
