from songquiz.models import GameConfig


def song(song_id, score=100, weight=1.0, **extra):
    data = {
        "id": song_id,
        "title": f"Titre {song_id}",
        "artist": f"Artiste {song_id}",
        "album": f"Album {song_id}",
        "score": score,
        "weight": weight,
    }
    data.update(extra)
    return data


def config_data(
    *,
    rounds=2,
    songs_per_round=2,
    round_end_mode="fixed",
    mode="sequential",
    allow_duplicates=False,
    songs=None,
    special_songs=None,
    scoring=None,
    players=None,
):
    return {
        "game": {
            "name": "Soirée test",
            "rounds": rounds,
            "round_end_mode": round_end_mode,
            "songs_per_round": songs_per_round,
        },
        "selection_rules": {"mode": mode, "allow_duplicates": allow_duplicates},
        "scoring": scoring or {"title_correct": 0.5, "artist_correct": 0.3},
        "players": players
        if players is not None
        else [
            {"id": 1, "name": "Alice", "team": "Rouge"},
            {"id": 2, "name": "Bob", "team": "Bleu"},
            {"id": 3, "name": "Chloé", "team": "Rouge"},
        ],
        "songs": songs if songs is not None else [song(i) for i in range(1, 5)],
        "special_songs": special_songs or [],
    }


def build_config(**kwargs):
    return GameConfig.model_validate(config_data(**kwargs))


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now
