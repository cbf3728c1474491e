import os
import sys

import pandas as pd

from transitrouting.config import config
from transitrouting.models.network import Stop
from transitrouting.network.store import derive_transfers


def build_transfers(data_dir, max_distance_m=None):
    """Write transfers.csv next to stops.csv and return the number of transfers"""
    if max_distance_m is None:
        max_distance_m = config.transfer_radius_m
    stops_df = pd.read_csv(os.path.join(data_dir, 'stops.csv'), dtype={'id': str})
    stops_df['latitude'] = pd.to_numeric(stops_df['latitude'], errors='coerce')
    stops_df['longitude'] = pd.to_numeric(stops_df['longitude'], errors='coerce')
    stops_df = stops_df.dropna(subset=['id', 'latitude', 'longitude'])
    stops = [
        Stop(id=row['id'], name=str(row['name']), lat=float(row['latitude']), lng=float(row['longitude']))
        for _, row in stops_df.iterrows()
    ]

    transfers = derive_transfers(stops, max_distance_m, config.walking_speed_m_per_min)
    transfers_df = pd.DataFrame(
        [{
            'from_stop_id': t.from_stop_id,
            'to_stop_id': t.to_stop_id,
            'walking_distance_m': round(t.walking_distance_m, 1),
            'estimated_time_min': t.estimated_time_min,
        } for t in transfers],
        columns=['from_stop_id', 'to_stop_id', 'walking_distance_m', 'estimated_time_min'],
    )
    transfers_df.to_csv(os.path.join(data_dir, 'transfers.csv'), index=False)
    return len(transfers_df)


if __name__ == '__main__':
    data_dir = sys.argv[1] if len(sys.argv) > 1 else config.data_dir
    count = build_transfers(data_dir)
    print(f">>> Wrote {count} transfers within {config.transfer_radius_m:.0f}m to {os.path.join(data_dir, 'transfers.csv')}")
