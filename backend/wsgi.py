from dailyops import create_app

app = create_app()
