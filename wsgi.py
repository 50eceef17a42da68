from orgsurvey import create_app

app = create_app()
