# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db revenda.db
  python app.py params show
  python app.py estoque add --nome "iPhone 15" --memoria 128GB --cor Preto --custo-usd 820 --taxa 0 --cambio 5.20 --spread 0.10 --imposto 0
  python app.py calcular --produto-id <id> --margem 20 --troca-valor 1000
  python app.py simulacao salvar --cliente Ana --produto-id <id> --margem 20
  python app.py vender <simulacao_id>
  python app.py caixa resumo
"""

from revenda.adapters.cli import main

if __name__ == "__main__":
    main()
