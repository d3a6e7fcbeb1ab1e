from socks_socket.cmd.cli import app

app(prog_name="socks-socket")
