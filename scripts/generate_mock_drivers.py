import pandas as pd
import numpy as np
from datetime import datetime, timezone, timedelta

from events.sensors import hash_beacon_address
from events.timestamps import to_iso
from proximity.geo import offset_by_meters

PLATE_LETTERS = list("BCDFGHJKLMNPRSTVWXYZ")


def generate_mock_drivers(output_file="mock_active_drivers.csv", num_drivers=40, center=(40.416775, -3.703790), now=None, seed=None):
    """
    Generates online driver location pings around an incident spot, in the
    same column layout the backend's active-drivers RPC returns.
    Drivers are scattered within ~150 m so some fall outside the 100 m
    search radius, and pings land within +/- 45 s of `now` so some fall
    outside the 30 s time window.
    """
    rng = np.random.default_rng(seed)
    now = now or datetime.now(timezone.utc)

    data = []
    for driver_index in range(num_drivers):
        lat, lon = offset_by_meters(
            center,
            north_m=rng.uniform(-150, 150),
            east_m=rng.uniform(-150, 150),
        )

        # 1. 30% of the drivers carry a beacon the evaluator could pick up
        beacon = f"AA:BB:CC:00:00:{driver_index:02X}" if rng.random() < 0.3 else None

        data.append({
            "user_id": f"DRV-{str(driver_index+1).zfill(3)}",
            "plate": f"{rng.integers(1000, 10000)}{''.join(rng.choice(PLATE_LETTERS, size=3))}",
            "location_lat": np.round(lat, 7),
            "location_lon": np.round(lon, 7),
            "location_captured_at": to_iso(now + timedelta(seconds=float(rng.uniform(-45, 45)))),
            # 2. speed is m/s, as driver devices upload it
            "motion_speed": np.round(rng.uniform(0, 16), 1),
            "motion_heading": np.round(rng.uniform(0, 360), 0),
            "bluetooth_mac_hash": hash_beacon_address(beacon) if beacon else "",
        })

    # 3. Save to CSV
    df = pd.DataFrame(data)
    df.to_csv(output_file, index=False)
    print(f"Generated {num_drivers} mock active drivers into '{output_file}'")
    print(f"  with beacon: {(df['bluetooth_mac_hash'] != '').sum()}")
    return df

if __name__ == "__main__":
    generate_mock_drivers(num_drivers=40)
