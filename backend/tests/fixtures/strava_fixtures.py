"""Strava API payloads used across tests."""

import time

ATHLETE = {
    "id": 1234567,
    "username": "climber",
    "resource_state": 2,
    "firstname": "Robin",
    "lastname": "Rider",
    "city": "Boulder",
    "state": "CO",
    "country": "United States",
    "sex": "F",
    "premium": True,
    "profile": "https://dgalywyr863hv.cloudfront.net/pictures/athletes/1234567/large.jpg",
    "profile_medium": "https://dgalywyr863hv.cloudfront.net/pictures/athletes/1234567/medium.jpg",
}

TOKEN_RESPONSE = {
    "token_type": "Bearer",
    "expires_at": int(time.time()) + 6 * 3600,
    "expires_in": 6 * 3600,
    "refresh_token": "refresh_abc",
    "access_token": "access_abc",
    "athlete": ATHLETE,
}

REFRESHED_TOKEN_RESPONSE = {
    "token_type": "Bearer",
    "expires_at": int(time.time()) + 6 * 3600,
    "expires_in": 6 * 3600,
    "refresh_token": "refresh_new",
    "access_token": "access_new",
}

ROUTE_ID = "3344556677889900112"

ROUTE = {
    "id": 3344556677889900112,
    "id_str": ROUTE_ID,
    "name": "Flagstaff Loop",
    "description": "Sunday climb with coffee stop",
    "distance": 42195.6,
    "elevation_gain": 812.4,
    "map": {
        "id": "r3344556677889900112",
        "polyline": "full_polyline_data",
        "summary_polyline": "summary_polyline_data",
        "resource_state": 3,
    },
    "type": 1,
    "sub_type": 1,
    "private": False,
    "starred": True,
    "timestamp": 1700000000,
    "estimated_moving_time": 6120,
    "segments": [],
}

ROUTE_LIST = [
    ROUTE,
    {**ROUTE, "id": 998877, "id_str": "998877", "name": "Canyon Out and Back"},
]

ROUTE_STREAMS = [
    {
        "type": "latlng",
        "data": [[40.015, -105.27], [40.02, -105.29]],
        "series_type": "distance",
        "original_size": 2,
        "resolution": "high",
    },
    {
        "type": "distance",
        "data": [0.0, 1900.2],
        "series_type": "distance",
        "original_size": 2,
        "resolution": "high",
    },
    {
        "type": "altitude",
        "data": [1655.0, 1702.3],
        "series_type": "distance",
        "original_size": 2,
        "resolution": "high",
    },
]
