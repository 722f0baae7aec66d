from pricewatch.main import main

main()
