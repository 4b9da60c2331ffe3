import argparse
import os
import time

import pandas as pd

from deliveries.store import DeliveryStore
from planner.planner import DeliveryPlanner, build_planner
from planner.settings import configure_logging, settings_from_env

def load_run(planner: DeliveryPlanner, filepath: str) -> int:
    """
    Feed a CSV produced by generate_mock_deliveries.py into the planner, row by row,
    the same way the map would (first row = pickup, then deliveries in tap order).
    """
    base_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    absolute_path = filepath if os.path.isabs(filepath) else os.path.join(base_dir, filepath)

    df = pd.read_csv(absolute_path)
    pickup_rows = df[df["kind"] == "pickup"]
    if pickup_rows.empty:
        raise ValueError(f"{filepath} has no pickup row")

    pickup = pickup_rows.iloc[0]
    planner.set_pickup((float(pickup["lat"]), float(pickup["lon"])))

    count = 0
    for _, row in df[df["kind"] == "delivery"].iterrows():
        delivery = planner.add_delivery((float(row["lat"]), float(row["lon"])))
        planner.update_customer(delivery.id, name=str(row["customer_name"]), phone=str(row["customer_phone"]))
        planner.update_order(
            delivery.id,
            items=str(row["items"]),
            amount=float(row["amount"]),
            is_paid=bool(row["is_paid"]),
        )
        count += 1
    return count

def run_summary(planner: DeliveryPlanner) -> pd.DataFrame:
    rows = []
    for stop, delivery in enumerate(planner.store.pending(), start=1):
        distance_m = planner.distance_from_pickup(delivery.id) or 0.0
        rows.append({
            "stop": stop,
            "customer": delivery.customer.name,
            "km_from_pickup": round(distance_m / 1000, 2),
            "fee": delivery.order.delivery_fee,
            "amount": delivery.order.amount,
            "total": delivery.total,
            "paid": delivery.order.is_paid,
            "address": delivery.address,
        })
    return pd.DataFrame(rows)

def run_simulation(filepath: str, use_services: bool):
    print("=== STARTING COURIER RUN SIMULATION ===")

    # 1. Configure System
    if use_services:
        planner = build_planner(settings_from_env())
    else:
        planner = DeliveryPlanner(store=DeliveryStore())

    try:
        # 2. Load Data
        count = load_run(planner, filepath)
        print(f"Loaded {count} deliveries.\n")

        before = run_summary(planner)

        # 3. Explicit optimize, exactly like pressing the button
        start_time = time.time()
        planner.optimize()
        print(f"Sequenced {count} deliveries in {time.time() - start_time:.3f}s.\n")

        if planner.geocode_queue is not None:
            # let every queued reverse lookup land, including the one in flight
            planner.close(wait=True, timeout=(count + 1) * (planner.geocode_queue.min_interval_sec + 10))

        after = run_summary(planner)

        print("--- Tap order ---")
        print(before[["stop", "customer", "km_from_pickup", "fee"]].to_string(index=False))
        print("\n--- Optimized run ---")
        print(after.to_string(index=False))

        print(f"\nFees to collect: {after['fee'].sum():.2f}")
        print(f"Cash to collect (unpaid orders): {after.loc[~after['paid'], 'total'].sum():.2f}")

        if planner.route is not None:
            print(f"Driving distance: {planner.route.distance_km:.2f} km")
            print(f"Estimated time:   {planner.route.duration_min} min")
            print(f"Path points:      {len(planner.route.path)}")
        elif use_services:
            print("No route available from OSRM.")
    finally:
        planner.close()

    print("\n=== SIMULATION COMPLETE ===")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Plan a courier run from a CSV of deliveries.")
    parser.add_argument("--input", default="mock_deliveries.csv")
    parser.add_argument("--services", action="store_true",
                        help="call OSRM / Nominatim (configured through .env)")
    args = parser.parse_args()

    configure_logging(os.getenv("LOG_LEVEL", "INFO"))
    run_simulation(args.input, args.services)
