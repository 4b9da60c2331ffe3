import argparse

import numpy as np
import pandas as pd

def generate_mock_deliveries(num_deliveries=15, output_file="mock_deliveries.csv", seed=None):
    """
    Generates a realistic day of drops for a single courier.
    The pickup point sits in the centre and deliveries are scattered within ~12km
    so every pricing tier (3 / 6 / 10 km and the fallback) gets exercised.
    """
    rng = np.random.default_rng(seed)

    # Centre around Caracas, Venezuela
    PICKUP_LAT = 10.4806
    PICKUP_LON = -66.9036

    data = []

    # 1. Pickup row first so the simulation knows where the run starts
    data.append({
        "kind": "pickup",
        "lat": PICKUP_LAT,
        "lon": PICKUP_LON,
        "customer_name": "",
        "customer_phone": "",
        "items": "",
        "amount": 0.0,
        "is_paid": True,
    })

    # 2. Generate deliveries
    for delivery_index in range(num_deliveries):
        # ~0.11 degrees is roughly 12km at this latitude
        lat = PICKUP_LAT + rng.uniform(-0.11, 0.11)
        lon = PICKUP_LON + rng.uniform(-0.11, 0.11)

        data.append({
            "kind": "delivery",
            "lat": np.round(lat, 6),
            "lon": np.round(lon, 6),
            "customer_name": f"Customer {delivery_index + 1}",
            "customer_phone": f"+58 412 {rng.integers(1000000, 9999999)}",
            "items": f"{rng.integers(1, 6)} x parcel",
            "amount": np.round(rng.uniform(5.0, 60.0), 2),
            "is_paid": bool(rng.choice([True, False], p=[0.4, 0.6])),
        })

    # 3. Save to CSV
    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"Generated {num_deliveries} deliveries and saved to '{output_file}'")

    return df

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Generate a CSV of mock deliveries around one pickup point.")
    parser.add_argument("--count", type=int, default=15)
    parser.add_argument("--output", default="mock_deliveries.csv")
    parser.add_argument("--seed", type=int, default=None)
    args = parser.parse_args()

    generate_mock_deliveries(num_deliveries=args.count, output_file=args.output, seed=args.seed)
