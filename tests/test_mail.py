from dor_indexer.notify import mail


class FakeSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.messages = []
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def send_message(self, msg):
        self.messages.append(msg)


def test_send_builds_plain_text_message(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)

    notifier = mail.SmtpNotifier(sender="rspec@example.com", host="smtp.example.com", port=2525)
    notifier.send("Report Body", "notification-list@example.com", "testcoll is finished")

    smtp = FakeSMTP.instances[0]
    assert (smtp.host, smtp.port) == ("smtp.example.com", 2525)
    msg = smtp.messages[0]
    assert msg["To"] == "notification-list@example.com"
    assert msg["From"] == "rspec@example.com"
    assert msg["Subject"] == "testcoll is finished"
    assert msg.get_content().strip() == "Report Body"


def test_send_without_recipients_does_nothing(monkeypatch):
    FakeSMTP.instances = []
    monkeypatch.setattr(mail.smtplib, "SMTP", FakeSMTP)

    mail.SmtpNotifier(sender="x@example.com").send("body", [], "subject")
    assert FakeSMTP.instances == []
