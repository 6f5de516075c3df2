import os
from spsites import create_app

app = create_app()

if __name__ == '__main__':
    # Debug/reloader off by default; the reloader would start a second job worker.
    # Enable with SPSITES_DEBUG_SERVER=1
    debug_flag = os.environ.get('SPSITES_DEBUG_SERVER', '0') == '1'
    routes = sorted({r.rule for r in app.url_map.iter_rules()})
    print(f"[spsites] Route count={len(routes)} sample={routes[:20]}")
    app.run(host=os.environ.get('SPSITES_HOST', '127.0.0.1'),
            port=int(os.environ.get('SPSITES_PORT', '5000')),
            debug=debug_flag, use_reloader=debug_flag)
