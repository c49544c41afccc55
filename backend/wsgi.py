from portops import create_app

app = create_app()
