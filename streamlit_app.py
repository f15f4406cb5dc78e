from functools import partial

import streamlit as st

from portfolio_spotify.models import Stats, Track
from portfolio_spotify.poller import AdaptivePoller, TimerQueue
from portfolio_spotify.visibility import page_visible
from portfolio_spotify.widget_client import api_base, fetch_now_playing, fetch_stats


RECENT_TRACKS_SHOWN = 3
# How often the browser reruns the widget to fire due poller timers
POLL_TICK_SECONDS = 1


def get_poller() -> AdaptivePoller:
    """One poller per browser session, started on first render."""
    if "poller" not in st.session_state:
        base = api_base()
        timers = TimerQueue()
        poller = AdaptivePoller(
            fetch_now_playing=partial(fetch_now_playing, base),
            fetch_stats=partial(fetch_stats, base),
            timers=timers,
        )
        placeholder = st.empty()
        with placeholder.container():
            st.caption("Loading Spotify...")
        poller.start()
        placeholder.empty()
        st.session_state["timers"] = timers
        st.session_state["poller"] = poller
    return st.session_state["poller"]


def render_now_playing(track: Track):
    st.markdown(":green[**● NOW PLAYING**]")
    art, info = st.columns([1, 2])
    if track.album_art:
        art.image(track.album_art, caption=track.album, width=160)
    info.markdown(f"### [{track.name}]({track.url})")
    info.write(track.artist)
    info.caption(track.album)
    if track.release_date:
        info.caption(f"Released: {track.release_date[:4]}")


def render_listening_stats(stats: Stats | None):
    st.markdown("**🎵 Spotify listening stats**")
    if stats is None:
        return
    if stats.top_artists:
        st.write(f"Top artist: **{stats.top_artists[0].name}**")
    if stats.recent_tracks:
        st.divider()
        st.caption("Recently played:")
        for track in stats.recent_tracks[:RECENT_TRACKS_SHOWN]:
            st.write(f"▶ {track.name} - {track.artist}")


@st.fragment(run_every=POLL_TICK_SECONDS)
def now_playing_widget():
    poller = get_poller()
    poller.set_visible(page_visible(default=poller.visible))
    timers: TimerQueue = st.session_state["timers"]
    timers.run_due()

    current = poller.current
    if current is not None and current.is_playing:
        render_now_playing(current)
    else:
        render_listening_stats(poller.stats)


def main():
    st.set_page_config(page_title="Now Playing", page_icon="🎵")
    now_playing_widget()


if __name__ == "__main__":
    main()
